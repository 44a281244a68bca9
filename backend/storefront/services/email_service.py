"""
Email Service - transactional email over SMTP

Sends account verification, password reset and order confirmation mails.
When SMTP_HOST is empty (local development) messages are logged instead
of sent.

Author: Online Store Team
Date: 2025-02-24
"""
import smtplib
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from storefront.core.config import settings
from storefront.domain.order import Order

logger = logging.getLogger(__name__)

STORE_NAME = "Online Store"


class EmailService:
    """SMTP mailer configured from settings"""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        use_tls: Optional[bool] = None
    ):
        self.host = host if host is not None else settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.user = user if user is not None else settings.SMTP_USER
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.sender = sender or settings.EMAIL_FROM
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls

    @property
    def is_configured(self) -> bool:
        return bool(self.host)

    def send_email(self, to_email: str, subject: str, html_body: str, text_body: Optional[str] = None) -> bool:
        """
        Send one message.

        Returns:
            True if handed to the SMTP server, False if SMTP is not configured

        Raises:
            smtplib.SMTPException / OSError on delivery failure
        """
        if not self.is_configured:
            logger.info(f"SMTP not configured; would send '{subject}' to {to_email}")
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to_email
        if text_body:
            msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        with smtplib.SMTP(self.host, self.port, timeout=15) as server:
            if self.use_tls:
                server.starttls()
            if self.user:
                server.login(self.user, self.password)
            server.send_message(msg)

        logger.info(f"Sent '{subject}' to {to_email}")
        return True

    def send_verification_email(self, to_email: str, raw_token: str) -> bool:
        url = f"{settings.FRONTEND_URL}/verify-email?token={raw_token}"
        minutes = settings.EMAIL_TOKEN_EXPIRE_MINUTES
        html = f"""
            <h2>Xác minh email - {STORE_NAME}</h2>
            <p>Cảm ơn bạn đã đăng ký. Nhấn vào liên kết dưới đây để xác minh email:</p>
            <p><a href="{url}">Xác minh email</a></p>
            <p>Liên kết có hiệu lực trong {minutes} phút.</p>
        """
        text = f"Xác minh email: {url} (hiệu lực {minutes} phút)"
        return self.send_email(to_email, f"Xác minh email tài khoản của bạn - {STORE_NAME}", html, text)

    def send_password_reset_email(self, to_email: str, raw_token: str) -> bool:
        url = f"{settings.FRONTEND_URL}/reset-password?token={raw_token}"
        minutes = settings.EMAIL_TOKEN_EXPIRE_MINUTES
        html = f"""
            <h2>Đặt lại mật khẩu - {STORE_NAME}</h2>
            <p>Bạn (hoặc ai đó) đã yêu cầu đặt lại mật khẩu.</p>
            <p><a href="{url}">Đặt lại mật khẩu</a></p>
            <p>Liên kết có hiệu lực trong {minutes} phút. Nếu bạn không yêu cầu, hãy bỏ qua email này.</p>
        """
        text = f"Đặt lại mật khẩu: {url} (hiệu lực {minutes} phút)"
        return self.send_email(to_email, f"Đặt lại mật khẩu - {STORE_NAME}", html, text)

    def send_order_confirmation(self, to_email: str, order: Order) -> bool:
        rows = "".join(
            f"<tr><td>{item.name}</td><td>{item.qty}</td><td>{item.price:,.0f}₫</td></tr>"
            for item in order.items
        )
        html = f"""
            <h2>Xác nhận đơn hàng #{order.id} - {STORE_NAME}</h2>
            <table>
                <tr><th>Sản phẩm</th><th>SL</th><th>Đơn giá</th></tr>
                {rows}
            </table>
            <p>Phí vận chuyển: {order.shipping_fee:,.0f}₫</p>
            <p>Giảm giá: {order.discount_price:,.0f}₫</p>
            <p><strong>Tổng cộng: {order.total_price:,.0f}₫</strong></p>
        """
        return self.send_email(to_email, f"Xác nhận đơn hàng #{order.id} - {STORE_NAME}", html)


def send_safely(action, *args) -> bool:
    """
    Run an EmailService method; delivery problems are logged, not raised,
    so a mail outage never fails the request that triggered it.
    """
    try:
        return action(*args)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Email delivery failed ({action.__name__}): {e}")
        return False
