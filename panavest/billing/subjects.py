"""
What a payment pays for.

The gateway echoes the metadata we attach at initialization; these classes
are the typed form of that metadata. `kind` selects the variant.
"""

import re
import secrets
import time
from dataclasses import dataclass
from typing import ClassVar, Optional

from panavest.errors import MissingMetadataError

_REFERENCE_UNSAFE = re.compile(r"[^A-Za-z0-9.=-]")


@dataclass(frozen=True)
class CourseSubject:
    user_id: str
    course_id: str
    slug: Optional[str] = None

    kind: ClassVar[str] = "course"
    id_field: ClassVar[str] = "course_id"
    reference_prefix: ClassVar[str] = "pv"

    @property
    def subject_id(self) -> str:
        return self.course_id

    def key(self) -> dict:
        return {"user_id": self.user_id, "course_id": self.course_id}

    def to_metadata(self) -> dict:
        return {
            "kind": self.kind,
            "user_id": self.user_id,
            "course_id": self.course_id,
            "slug": self.slug,
        }

    def landing_path(self) -> str:
        return f"/knowledge/{self.slug}/dashboard"


@dataclass(frozen=True)
class EbookSubject:
    user_id: str
    ebook_id: str
    slug: Optional[str] = None

    kind: ClassVar[str] = "ebook"
    id_field: ClassVar[str] = "ebook_id"
    reference_prefix: ClassVar[str] = "pe"

    @property
    def subject_id(self) -> str:
        return self.ebook_id

    def key(self) -> dict:
        return {"user_id": self.user_id, "ebook_id": self.ebook_id}

    def to_metadata(self) -> dict:
        return {
            "kind": self.kind,
            "user_id": self.user_id,
            "ebook_id": self.ebook_id,
            "slug": self.slug,
        }

    def landing_path(self) -> str:
        return f"/ebooks/{self.slug}?paid=1"


SUBJECT_TYPES = {cls.kind: cls for cls in (CourseSubject, EbookSubject)}


def _text(value) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def resolve_kind(metadata: dict) -> Optional[str]:
    """`purchase_type` is the older name for `kind`; bare ids imply the kind."""
    kind = _text(metadata.get("kind")) or _text(metadata.get("purchase_type"))
    if kind:
        return kind.lower()
    if _text(metadata.get("course_id")):
        return CourseSubject.kind
    if _text(metadata.get("ebook_id")):
        return EbookSubject.kind
    return None


def subject_from_metadata(metadata, require_slug=False):
    """
    Build the subject a gateway notification refers to.

    Raises MissingMetadataError when the metadata cannot identify both the
    user and the product, so nothing gets marked paid by accident.
    """
    if not isinstance(metadata, dict):
        raise MissingMetadataError("Gateway metadata is missing")

    kind = resolve_kind(metadata)
    subject_cls = SUBJECT_TYPES.get(kind)
    if subject_cls is None:
        raise MissingMetadataError(f"Unknown payment kind: {kind!r}")

    user_id = _text(metadata.get("user_id"))
    subject_id = _text(metadata.get(subject_cls.id_field))
    slug = _text(metadata.get("slug"))

    missing = [
        name for name, value in (
            ("user_id", user_id),
            (subject_cls.id_field, subject_id),
            ("slug", slug if require_slug else "-"),
        ) if not value
    ]
    if missing:
        raise MissingMetadataError(
            f"Gateway metadata is missing {', '.join(missing)}",
            payload={"kind": kind},
        )

    return subject_cls(user_id, subject_id, slug)


def generate_reference(subject) -> str:
    """
    A fresh reference per checkout attempt: namespace, product id,
    millisecond timestamp and a random suffix. Paystack only accepts
    alphanumerics plus `-`, `.` and `=`.
    """
    subject_part = _REFERENCE_UNSAFE.sub("", subject.subject_id)
    return f"{subject.reference_prefix}-{subject_part}-{int(time.time() * 1000)}-{secrets.token_hex(4)}"
