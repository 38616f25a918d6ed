import httpx
import logging
from typing import List, Optional, Union
from authorhub.config.settings import settings

logger = logging.getLogger(__name__)

RESEND_TIMEOUT_SECONDS = 10.0


class EmailNotConfigured(Exception):
    pass


class EmailClient:
    """
    Minimal Resend client. POSTs JSON to the emails endpoint.
    """
    def __init__(
        self,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        url: Optional[str] = None,
        client: Optional[httpx.Client] = None
    ):
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.sender = sender or settings.email_from
        self.url = url or settings.resend_api_url
        self.client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: Union[str, List[str]], subject: str, html: str) -> str:
        """Send one email and return the Resend message id"""
        if not self.configured:
            raise EmailNotConfigured("RESEND_API_KEY is not set")
        body = {
            "from": self.sender,
            "to": [to] if isinstance(to, str) else to,
            "subject": subject,
            "html": html,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if self.client is not None:
            response = self.client.post(self.url, json=body, headers=headers)
        else:
            with httpx.Client(timeout=RESEND_TIMEOUT_SECONDS) as client:
                response = client.post(self.url, json=body, headers=headers)
        response.raise_for_status()
        message_id = response.json().get("id", "")
        logger.info(f"Email sent to {body['to']} (id: {message_id})")
        return message_id
