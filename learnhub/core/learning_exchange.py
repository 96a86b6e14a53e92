"""
Learning-plan exchange with the n8n workflow engine.

Submission forwards a learner profile to n8n. n8n generates the plan out of
process and POSTs it back to the callback receiver, which stores it until the
client's polling loop picks it up.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Set

import requests

from learnhub.config import config
from learnhub.core.plan_transform import resolve_plan_key, transform_plan, unwrap_envelope
from learnhub.db.store import PlanStore
from learnhub.models.schemas import LearningPlanRecord
from learnhub.utils.errors import (
    ConfigurationError,
    NotFoundError,
    UpstreamUnavailable,
    ValidationError,
    WorkflowEngineError,
)
from learnhub.utils.helpers import is_plausible_email, normalize_identifier
from learnhub.utils.logger import logging


class LearningPlanExchange:
    """Submission, webhook receiver, polling getter and cleanup for plans."""

    def __init__(
        self,
        store: PlanStore,
        webhook_url: Optional[str] = None,
        extra_webhook_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        ttl_seconds: Optional[int] = None,
        clock=time.time,
    ):
        """
        Initialize the exchange.

        Args:
            store: Where received plans live until they expire
            webhook_url: n8n webhook that generates plans
            extra_webhook_url: Optional second webhook notified fire-and-forget
            session: HTTP session for outbound calls
            timeout: Seconds to wait for each n8n call
            ttl_seconds: How long a received plan stays retrievable
        """
        self.store = store
        self.webhook_url = webhook_url if webhook_url is not None else config.N8N_WEBHOOK_URL
        self.extra_webhook_url = (
            extra_webhook_url if extra_webhook_url is not None else config.N8N_EXTRA_WEBHOOK_URL
        )
        self.session = session or requests.Session()
        self.timeout = timeout or config.N8N_TIMEOUT_SEC
        self.ttl_seconds = ttl_seconds or config.LEARNING_DATA_TTL_SEC
        self._clock = clock
        self._background: Set[asyncio.Task] = set()

    # Submission

    async def submit(self, profile: Any) -> Any:
        """
        Forward a learner profile to n8n and return its answer.

        The extra webhook, when configured, receives the same payload on a
        detached task whose outcome never reaches the caller.
        """
        if not isinstance(profile, dict) or not profile.get("email") or not profile.get("learningGoals"):
            raise ValidationError("Missing required fields: email, learningGoals")
        if not is_plausible_email(profile["email"]):
            raise ValidationError("Invalid email format")
        if not self.webhook_url:
            raise ConfigurationError("N8N_WEBHOOK_URL is not configured")

        if self.extra_webhook_url:
            task = asyncio.create_task(asyncio.to_thread(self.notify_extra_webhook, profile))
            self._background.add(task)
            task.add_done_callback(self._background.discard)

        return await asyncio.to_thread(self._forward, profile)

    def _forward(self, profile: Dict[str, Any]) -> Any:
        try:
            response = self.session.post(self.webhook_url, json=profile, timeout=self.timeout)
        except requests.Timeout as e:
            raise UpstreamUnavailable(f"n8n webhook timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"n8n webhook unreachable: {e}") from e

        if not response.ok:
            logging.error(f"n8n webhook error: {response.status_code}")
            raise WorkflowEngineError(response.status_code)

        try:
            return response.json()
        except ValueError:
            return {"message": response.text}

    def notify_extra_webhook(self, profile: Dict[str, Any]) -> None:
        """Send the profile to the extra webhook. Failures are only logged."""
        try:
            response = self.session.post(self.extra_webhook_url, json=profile, timeout=self.timeout)
        except requests.RequestException as e:
            logging.warning(f"Extra n8n webhook error: {e}")
            return

        if not response.ok:
            logging.warning(f"Extra n8n webhook returned status {response.status_code}")

    async def wait_for_background(self) -> None:
        """Wait for detached notifications to finish."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # Callback receiver

    def receive(self, payload: Any, request_ids: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Store a plan delivered by n8n.

        Args:
            payload: The raw JSON body of the callback
            request_ids: Identifiers n8n put on the callback URL

        Returns:
            Acknowledgement with the key the plan can be polled under
        """
        data = unwrap_envelope(payload)
        record = transform_plan(data)

        if not record.learning_path:
            logging.error("Invalid learning data structure: no modules")
            raise ValidationError("Invalid learning data structure - no learning_path found")
        if record.email and not is_plausible_email(record.email):
            raise ValidationError(f"Invalid email format: {record.email}")

        data_id = resolve_plan_key(payload, data, record, request_ids)
        if data_id is None:
            data_id = f"learning-{int(self._clock() * 1000)}"
            logging.warning(f"No identifier in callback, generated {data_id}")
        if record.email is None and is_plausible_email(data_id):
            record = record.model_copy(update={"email": data_id})

        stored = self.store.set(data_id, record, self.ttl_seconds)
        modules_count = len(stored.learning_path)
        logging.info(f"Learning data stored for {data_id} ({modules_count} modules)")

        return {
            "success": True,
            "message": "Learning plan received successfully",
            "dataId": data_id,
            "modulesCount": modules_count,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # Polling and cleanup

    def get_plan(self, identifier: Any) -> LearningPlanRecord:
        """
        Return the stored plan for ``identifier``.

        Raises:
            NotFoundError: when the plan has not arrived yet or has expired
        """
        data_id = self._normalize(identifier)
        record = self.store.get(data_id)
        if record is None:
            logging.debug(f"Learning data not found yet: {data_id}")
            raise NotFoundError(
                "Learning data not found. Please wait for n8n to process your request."
            )
        return record

    def delete_plan(self, identifier: Any) -> bool:
        """Remove a stored plan; deleting a missing plan is not an error."""
        data_id = self._normalize(identifier)
        removed = self.store.delete(data_id)
        logging.info(f"Learning data cleared for {data_id} (existed={removed})")
        return removed

    def cleanup_expired(self) -> int:
        removed = self.store.sweep()
        if removed:
            logging.info(f"Cleaned up {removed} expired learning plans")
        return removed

    @staticmethod
    def _normalize(identifier: Any) -> str:
        if not isinstance(identifier, str) or not identifier.strip():
            raise ValidationError("Missing dataId parameter")
        return normalize_identifier(identifier)
