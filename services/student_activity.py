"""Student activity endpoints: fetch content, submit attempts.

The activity widgets never talk to the network; the page owning them uses
this service to load content before mounting and to persist the
``ActivityResult`` once the completion callback fires.
"""

from __future__ import annotations

import logging
import random

from activities.base import BaseActivity, CompletionCallback
from activities.drag_drop import DropZoneRegistry
from activities.factory import create_activity
from activities.scheduler import CallbackScheduler
from models.activity import (
    ActivityContent,
    ActivityResult,
    ActivitySubmissionResponse,
    SubmitActivityRequest,
)
from services.api_client import ApiClient
from services.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class StudentActivityService:
    def __init__(self, api_client: ApiClient) -> None:
        self._api = api_client

    async def get_activity_content(
        self,
        activity_id: str,
        cancel_token: CancellationToken | None = None,
    ) -> ActivityContent:
        data = await self._api.get(
            f"/student/activities/{activity_id}/content", cancel_token=cancel_token
        )
        return ActivityContent.model_validate(data)

    async def submit_activity(
        self,
        activity_id: str,
        result: ActivityResult,
        cancel_token: CancellationToken | None = None,
    ) -> ActivitySubmissionResponse:
        body = SubmitActivityRequest.from_result(result).model_dump(by_alias=True)
        logger.info(
            "Submitting activity %s: score=%d percentage=%d",
            activity_id, result.score, result.percentage,
        )
        data = await self._api.post(
            f"/student/activities/{activity_id}/submit",
            json_body=body,
            cancel_token=cancel_token,
        )
        return ActivitySubmissionResponse.model_validate(data)

    async def load_activity(
        self,
        activity_id: str,
        on_complete: CompletionCallback,
        *,
        scheduler: CallbackScheduler | None = None,
        rng: random.Random | None = None,
        drop_zones: DropZoneRegistry | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> BaseActivity:
        """Fetch content and mount the matching activity in one step."""
        content = await self.get_activity_content(activity_id, cancel_token=cancel_token)
        return create_activity(
            content,
            on_complete,
            scheduler=scheduler,
            rng=rng,
            drop_zones=drop_zones,
        )
