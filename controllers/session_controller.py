"""Session orchestration: identity, image staging, generation and persistence."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Callable, Optional

from fastapi import Request

from models.session_models import SessionPhase, SessionState
from services.gemini.generation_client import GenerationClient
from services.identity.identity_provider import IdentityEvent, IdentityProvider
from services.image_ingestor import ImageIngestor, SelectedFile
from services.notifier import LoggingNotifier, Notifier
from services.result_store import ResultStore
from utils.errors import ConfigurationError, GenerationError, StorageError, ValidationError

LOGGER = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "Please upload an image."
PREPARING_MESSAGE = "Application is preparing, please wait a moment."
AUTH_FAILED_MESSAGE = "Authentication failed. Please check your network connection and reload the application."
STORAGE_UNAVAILABLE_MESSAGE = "Storage is not available right now. Please try again shortly."
NOT_CONFIGURED_MESSAGE = "The generation service is not configured. Please contact the administrator."
GENERATION_FAILED_MESSAGE = "Generation failed. Please try again."
SAVE_FAILED_MESSAGE = "Your title and keywords were generated but could not be saved. Please try again."


class SessionController:
	"""Own the session state and sequence the services for each user action.

	All methods run on the event loop; `loading` gates re-entrant generation.
	A generation that settles after a newer image was selected still applies
	its result to the current state.
	"""

	def __init__(
		self,
		identity_provider: IdentityProvider,
		ingestor: ImageIngestor,
		generation_client: GenerationClient,
		result_store: ResultStore,
		notifier: Optional[Notifier] = None,
	) -> None:
		self.identity_provider = identity_provider
		self.ingestor = ingestor
		self.generation_client = generation_client
		self.result_store = result_store
		self.notifier = notifier or LoggingNotifier()
		self.state = SessionState()
		self._remove_listener: Optional[Callable[[], None]] = None
		self._identity_task: Optional[asyncio.Task] = None

	async def start(self) -> None:
		"""Mount the session and begin establishing the identity in the background.

		Returns without waiting for sign-in; the state reports
		`AWAITING_IDENTITY` until the identity event arrives.
		"""
		if self._remove_listener is not None:
			return
		self.state.phase = SessionPhase.AWAITING_IDENTITY
		self._remove_listener = self.identity_provider.add_listener(self._on_identity_event)
		self._identity_task = asyncio.create_task(self._establish_identity())

	async def wait_for_identity(self) -> None:
		"""Wait until the background sign-in started by `start()` has settled."""
		if self._identity_task is not None:
			await asyncio.shield(self._identity_task)

	async def _establish_identity(self) -> None:
		try:
			await self.identity_provider.ensure_identity()
		except Exception:
			LOGGER.exception("Unexpected error while establishing the identity")
			self.state.error = AUTH_FAILED_MESSAGE
			self.state.phase = SessionPhase.FAILED

	async def close(self) -> None:
		"""Tear the session down and release the identity subscription."""
		task, self._identity_task = self._identity_task, None
		if task is not None and not task.done():
			task.cancel()
			try:
				await task
			except asyncio.CancelledError:
				pass
		if self._remove_listener is not None:
			self._remove_listener()
			self._remove_listener = None
		self.identity_provider.close()
		self.ingestor.supersede()

	def snapshot(self) -> SessionState:
		"""Return a copy of the state including recent notifications."""
		recent = getattr(self.notifier, "recent", None)
		notifications = recent() if callable(recent) else []
		return dataclasses.replace(self.state, notifications=notifications)

	def _readiness_phase(self) -> SessionPhase:
		if not self.state.identity_ready:
			return SessionPhase.AWAITING_IDENTITY
		return SessionPhase.READY_WITH_IMAGE if self.state.image else SessionPhase.READY_NO_IMAGE

	def _on_identity_event(self, event: IdentityEvent) -> None:
		if event.failure is not None:
			self.state.identity_ready = False
			self.state.error = AUTH_FAILED_MESSAGE
			self.state.phase = SessionPhase.FAILED
			return
		if event.identity is None:
			self.state.identity_ready = False
			if not self.state.loading:
				self.state.phase = SessionPhase.AWAITING_IDENTITY
			return
		self.state.identity = event.identity
		self.state.identity_ready = True
		if self.state.error == PREPARING_MESSAGE:
			self.state.error = None
			if not self.state.loading:
				self.state.phase = self._readiness_phase()
		elif self.state.phase in (SessionPhase.IDLE, SessionPhase.AWAITING_IDENTITY):
			self.state.phase = self._readiness_phase()

	async def select_image(self, file: Optional[SelectedFile]) -> SessionState:
		"""Stage a newly selected file, replacing any previous image.

		Passing None clears the staged image. Validation failures clear the
		staged image and record the error; the identity is never reset.
		"""
		if file is None:
			self.ingestor.supersede()
			self.state.image = None
			self._settle_after_selection()
			return self.snapshot()

		try:
			encoded = await self.ingestor.ingest(file)
		except ValidationError as exc:
			LOGGER.info("Rejected selected file (%s)", exc.kind.value)
			self.state.image = None
			self._settle_after_selection(error=str(exc))
			return self.snapshot()

		if encoded is None:
			return self.snapshot()

		self.state.image = encoded
		self._settle_after_selection()
		return self.snapshot()

	def _settle_after_selection(self, error: Optional[str] = None) -> None:
		if self.identity_provider.failure is not None:
			self.state.error = error or AUTH_FAILED_MESSAGE
			return
		self.state.error = error
		if not self.state.loading:
			self.state.phase = self._readiness_phase()

	def _precondition_failure(self) -> Optional[str]:
		if self.state.image is None:
			return NO_IMAGE_MESSAGE
		if self.identity_provider.failure is not None:
			return AUTH_FAILED_MESSAGE
		if not self.state.identity_ready or self.state.identity is None:
			return PREPARING_MESSAGE
		if not self.result_store.is_ready():
			return STORAGE_UNAVAILABLE_MESSAGE
		return None

	async def generate(self) -> SessionState:
		"""Generate a title and keywords for the staged image and persist them."""
		if self.state.loading:
			LOGGER.warning("Ignoring generate request while a generation is in flight")
			return self.snapshot()

		failure = self._precondition_failure()
		if failure is not None:
			LOGGER.warning("Generate precondition failed: %s", failure)
			self.state.error = failure
			self.state.phase = SessionPhase.FAILED
			return self.snapshot()

		image = self.state.image
		identity = self.state.identity
		self.state.loading = True
		self.state.phase = SessionPhase.GENERATING
		self.state.error = None
		self.state.result = None

		try:
			await self._generate_and_persist(image, identity)
		finally:
			self.state.loading = False
		return self.snapshot()

	async def _generate_and_persist(self, image, identity) -> None:
		try:
			result = await self.generation_client.generate(image)
		except ConfigurationError as exc:
			LOGGER.error("Generation is not configured: %s", exc)
			self._fail(NOT_CONFIGURED_MESSAGE)
			return
		except GenerationError as exc:
			LOGGER.error("Generation failed: %s", exc)
			self._fail(GENERATION_FAILED_MESSAGE)
			return
		except Exception:
			LOGGER.exception("Unexpected error during generation")
			self._fail(GENERATION_FAILED_MESSAGE)
			return

		self.state.result = result

		try:
			await self.result_store.persist(identity, image, result)
		except StorageError as exc:
			LOGGER.error("Persisting result failed: %s", exc)
			self._fail(SAVE_FAILED_MESSAGE)
			return

		# Errors from selections made while generating are stale now.
		self.state.error = None
		self.state.phase = SessionPhase.SUCCEEDED

	def _fail(self, message: str) -> None:
		self.state.error = message
		self.state.phase = SessionPhase.FAILED

	def copy_title(self) -> Optional[str]:
		"""Return the title for the clipboard and announce it."""
		result = self.state.result
		if result is None or not result.title:
			self.notifier.notify("Nothing to copy.", "error")
			return None
		self.notifier.notify("Title copied!", "success")
		return result.title

	def copy_keywords(self) -> Optional[str]:
		"""Return the comma-separated keywords for the clipboard and announce it."""
		result = self.state.result
		if result is None or not result.keywords:
			self.notifier.notify("Nothing to copy.", "error")
			return None
		self.notifier.notify("Keywords copied!", "success")
		return ", ".join(result.keywords)


def get_session_controller(request: Request) -> SessionController:
	"""Return the process-wide session controller attached at startup."""
	return request.app.state.session_controller
