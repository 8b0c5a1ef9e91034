from __future__ import annotations

from functools import partial
from typing import Annotated

from fastapi import Depends, Request

from app.core.db.schemas.auth import User
from app.core.task_queue import enqueue_document_processing
from app.modules.auth import current_active_user
from app.modules.study.service import StudyService


CurrentUser = Annotated[User, Depends(current_active_user)]


def get_study_service(request: Request) -> StudyService:
    """Build the service from the components created in the app lifespan."""
    state = request.app.state
    return StudyService(
        state.store,
        partial(enqueue_document_processing, state.queue, state.processor),
        max_upload_bytes=state.settings.app.max_upload_bytes,
    )


StudyServiceDep = Annotated[StudyService, Depends(get_study_service)]
