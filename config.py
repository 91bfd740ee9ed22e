# config.py
import logging
import os

from dotenv import load_dotenv

load_dotenv()

MAIL_RECIPIENT: str = os.getenv("PEDIDOS_MAIL_RECIPIENT", "")
MAIL_CLIENT: str = os.getenv("PEDIDOS_MAIL_CLIENT", "auto").strip().lower()
LOG_LEVEL: str = os.getenv("PEDIDOS_LOG_LEVEL", "INFO").strip().upper()
LOGO_URL: str = os.getenv("PEDIDOS_LOGO_URL", "https://www.vpcom.com/images/logo-vpc.png")

MAIL_CLIENT_CHOICES = ("auto", "mailto", "gmail")

_logging_configured = False


def configure_logging() -> None:
    """Configure root logging once per process (Streamlit reruns the page script)."""
    global _logging_configured
    if _logging_configured:
        return

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if MAIL_CLIENT not in MAIL_CLIENT_CHOICES:
        logging.getLogger(__name__).warning(
            "PEDIDOS_MAIL_CLIENT=%r not recognised, falling back to 'auto'", MAIL_CLIENT
        )
    _logging_configured = True
