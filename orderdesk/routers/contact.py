from fastapi import APIRouter, Depends, status

from orderdesk.core.api_docs import error_responses
from orderdesk.core.deps import get_dispatcher, get_recipients, get_store
from orderdesk.schemas.contact import ContactSubmissionCreate, ContactSubmissionOut
from orderdesk.services.email_service import NotificationDispatcher, notify_safely
from orderdesk.services.notifications import NotificationRecipients, contact_messages
from orderdesk.services.order_store import OrderStore

router = APIRouter(prefix="/api/contact", tags=["contact"])


@router.get("", response_model=list[ContactSubmissionOut], summary="List contact submissions")
def list_contact_submissions(store: OrderStore = Depends(get_store)):
    return store.list_contact_submissions()


@router.post(
    "",
    response_model=ContactSubmissionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Submit contact form",
    responses=error_responses(400, 500),
)
def create_contact_submission(
    payload: ContactSubmissionCreate,
    store: OrderStore = Depends(get_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    recipients: NotificationRecipients = Depends(get_recipients),
):
    submission = store.create_contact_submission(payload)
    notify_safely(
        dispatcher,
        contact_messages(submission, recipients),
        context=f"contact:{submission.id}",
    )
    return submission
