from __future__ import annotations

from datetime import datetime
from typing import Literal

from sqlalchemy.ext.asyncio import AsyncSession

from voltline.models.notification import Notification
from voltline.services.notifications import create_notification

ContentType = Literal["blog_post", "testimonial", "portfolio_item", "page_content"]

_CONTENT_LABELS = {
    "blog_post": "Blog post",
    "testimonial": "Testimonial",
    "portfolio_item": "Portfolio item",
    "page_content": "Page content",
}

_CONTENT_PATHS = {
    "blog_post": "blog",
    "testimonial": "testimonials",
    "portfolio_item": "portfolio",
    "page_content": "pages",
}


def content_label(content_type: str) -> str:
    return _CONTENT_LABELS.get(content_type, "Content")


def content_admin_url(content_type: str, content_id: str) -> str:
    base = "/admin/content"
    path = _CONTENT_PATHS.get(content_type)
    if not path:
        return base
    return f"{base}/{path}/{content_id}"


async def notify_form_submission(
    db: AsyncSession,
    *,
    form_id: str,
    customer_name: str,
    service_type: str,
    is_urgent: bool = False,
) -> Notification:
    title = "Urgent inquiry received" if is_urgent else "New form submission"
    message = f"{customer_name} submitted a {service_type} request"
    return await create_notification(
        db,
        type="form_submission",
        title=title,
        message=message,
        priority="urgent" if is_urgent else "high",
        action_url=f"/admin/forms/{form_id}",
        metadata={"formId": form_id, "serviceType": service_type, "isUrgent": is_urgent},
    )


async def notify_content_published(
    db: AsyncSession,
    *,
    content_id: str,
    content_title: str,
    content_type: ContentType,
    author_name: str,
    publish_date: datetime | None = None,
) -> Notification:
    metadata = {"contentId": content_id, "contentType": content_type, "authorName": author_name}
    if publish_date is not None:
        metadata["publishDate"] = publish_date.isoformat()
    return await create_notification(
        db,
        type="content_published",
        title=f"{content_label(content_type)} published",
        message=f'"{content_title}" has been published by {author_name}',
        priority="low",
        action_url=content_admin_url(content_type, content_id),
        metadata=metadata,
    )


async def notify_content_scheduled(
    db: AsyncSession,
    *,
    content_id: str,
    content_title: str,
    content_type: ContentType,
    author_name: str,
    scheduled_date: datetime,
) -> Notification:
    return await create_notification(
        db,
        type="reminder",
        title=f"{content_label(content_type)} scheduled",
        message=f'"{content_title}" is scheduled to publish on {scheduled_date.strftime("%Y-%m-%d")}',
        priority="low",
        action_url=content_admin_url(content_type, content_id),
        metadata={
            "contentId": content_id,
            "contentType": content_type,
            "authorName": author_name,
            "scheduledDate": scheduled_date.isoformat(),
        },
    )


async def notify_content_needs_review(
    db: AsyncSession,
    *,
    content_id: str,
    content_title: str,
    content_type: ContentType,
    author_name: str,
    review_reason: str,
) -> Notification:
    return await create_notification(
        db,
        type="system",
        title="Content needs review",
        message=f'"{content_title}" requires review: {review_reason}',
        priority="medium",
        action_url=content_admin_url(content_type, content_id),
        metadata={
            "contentId": content_id,
            "contentType": content_type,
            "authorName": author_name,
            "reviewReason": review_reason,
        },
    )
