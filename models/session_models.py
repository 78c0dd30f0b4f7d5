"""Session domain models for the image tool."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from models.generation_models import EncodedImage, GenerationResult


@dataclass(frozen=True)
class Identity:
	"""Identity the session acts as; immutable once established."""

	id: str
	anonymous: bool


class SessionPhase(str, Enum):
	IDLE = "idle"
	AWAITING_IDENTITY = "awaiting_identity"
	READY_NO_IMAGE = "ready_no_image"
	READY_WITH_IMAGE = "ready_with_image"
	GENERATING = "generating"
	SUCCEEDED = "succeeded"
	FAILED = "failed"


@dataclass
class Notification:
	"""Feedback message raised for the user (copy confirmations and similar)."""

	message: str
	kind: str
	created_at: float = field(default_factory=lambda: time.time())


@dataclass
class SessionState:
	"""Single source of truth for what the client displays."""

	phase: SessionPhase = SessionPhase.IDLE
	identity: Optional[Identity] = None
	identity_ready: bool = False
	image: Optional[EncodedImage] = None
	loading: bool = False
	error: Optional[str] = None
	result: Optional[GenerationResult] = None
	notifications: List[Notification] = field(default_factory=list)

	def to_dict(self) -> dict:
		"""Return a JSON-friendly view of the state (image bytes omitted)."""
		return {
			"phase": self.phase.value,
			"identity": {"id": self.identity.id, "anonymous": self.identity.anonymous} if self.identity else None,
			"identity_ready": self.identity_ready,
			"image": (
				{"mime_type": self.image.mime_type, "size_bytes": self.image.size_bytes} if self.image else None
			),
			"loading": self.loading,
			"error": self.error,
			"result": (
				{"title": self.result.title, "keywords": list(self.result.keywords)} if self.result else None
			),
			"notifications": [{"message": n.message, "kind": n.kind} for n in self.notifications],
		}
