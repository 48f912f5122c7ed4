"""
Overlay state for the page currently being read.

Holds the single active (unsaved) recognition result and a read-through
cache of the persisted history entries of the displayed page. All durable
changes go through the PersistenceGateway first; the cache is only updated
once the gateway call succeeded.
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple

from PIL import Image

from core.errors import EntryNotFoundError, MangaOCRError, ValidationError
from core.models import (
    AbsoluteBox,
    NormalizedRegion,
    OverlayEntry,
    PageRef,
    RecognitionOutcome,
    RecognitionResult
)
from utils.geometry import region_to_box
from .ocr_service import OCRService
from .persistence import PersistenceGateway

logger = logging.getLogger(__name__)


class OverlayStateManager:
    """Per-reader overlay state: one active entry plus the page's history."""

    def __init__(self, gateway: PersistenceGateway, ocr_service: Optional[OCRService] = None):
        """
        Initialize overlay state.

        Args:
            gateway: Persistence gateway of the signed-in caller
            ocr_service: Recognition orchestrator used by ``run_selection``
        """
        self.gateway = gateway
        self.ocr_service = ocr_service
        self.page_ref: Optional[PageRef] = None
        self.active: Optional[OverlayEntry] = None
        self.entries: Dict[str, OverlayEntry] = OrderedDict()
        self.last_outcome: Optional[RecognitionOutcome] = None
        self._generation = 0

    # ── Active entry ─────────────────────────────────────────

    def begin_selection(self) -> int:
        """
        Start a new selection; clears any active entry.

        Returns:
            Generation number identifying this selection
        """
        self.active = None
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def set_active(
        self,
        result: RecognitionResult,
        region: NormalizedRegion,
        generation: Optional[int] = None
    ) -> Optional[OverlayEntry]:
        """
        Make a recognition result the active entry.

        A result tagged with an outdated generation is ignored.
        """
        if generation is not None and not self.is_current(generation):
            logger.debug("Discarding stale result for selection %d", generation)
            return None
        self.active = OverlayEntry(result=result, region=region, page_ref=self.page_ref)
        return self.active

    def dismiss_active(self) -> None:
        """Drop the active entry. Results still in flight are discarded on arrival."""
        self.active = None
        self._generation += 1

    async def run_selection(
        self,
        image: Image.Image,
        region: NormalizedRegion,
        access_token: Optional[str] = None,
        auto_save: bool = False,
        **recognize_kwargs
    ) -> Optional[OverlayEntry]:
        """
        Recognize a freshly selected region and make it the active entry.

        Args:
            image: Decoded page image
            region: Selected region
            access_token: Bearer token for the remote call
            auto_save: Write the result to history right away
            **recognize_kwargs: prefer_remote / remote_only overrides

        Returns:
            The active (or, with auto_save, persisted) entry; None if the
            selection was superseded or dismissed while recognition was
            running, whether recognition succeeded or failed
        """
        if self.ocr_service is None:
            raise ValidationError("No OCR service configured for this reader.")

        generation = self.begin_selection()
        try:
            outcome = await self.ocr_service.recognize_region(
                image, region, access_token=access_token, **recognize_kwargs
            )
        except MangaOCRError as e:
            if not self.is_current(generation):
                logger.debug("Discarding stale failure for selection %d: %s", generation, e)
                return None
            raise
        entry = self.set_active(outcome.result, region, generation)
        if entry is None:
            return None

        self.last_outcome = outcome
        if auto_save:
            return self.save_active_to_history()
        return entry

    def save_active_to_history(self) -> OverlayEntry:
        """
        Persist the active entry as a history row of the current page.

        On success the entry moves from active to the page's history cache
        (front of the mapping, matching newest-first order). On failure the
        active entry is kept so the user does not lose the result.
        """
        if self.active is None:
            raise ValidationError("There is no active translation to save.")
        if self.page_ref is None:
            raise ValidationError("No page is currently displayed.")

        active = self.active
        history_id = self.gateway.create_history_entry(active.region, self.page_ref, active.result)

        entry = OverlayEntry(
            result=active.result,
            region=active.region,
            history_id=history_id,
            page_ref=self.page_ref,
            visible=True
        )
        self.entries[history_id] = entry
        self.entries.move_to_end(history_id, last=False)
        self.active = None
        return entry

    def save_active_to_vault(self) -> str:
        """
        Copy the active entry into the vault.

        The active entry stays in place; dismissing it is a separate action.
        """
        if self.active is None:
            raise ValidationError("There is no active translation to save.")
        result = self.active.result
        return self.gateway.create_vault_entry(
            RecognitionResult(text=result.text, translated=result.translated, phonetic=result.phonetic)
        )

    # ── Page history ─────────────────────────────────────────

    def change_page(self, page_ref: PageRef) -> Dict[str, OverlayEntry]:
        """Switch to another page: clears the active entry and reloads history."""
        self.dismiss_active()
        self.page_ref = page_ref
        return self.load_page()

    def load_page(self) -> Dict[str, OverlayEntry]:
        """Reload persisted entries for the current page in gateway order."""
        self.entries = OrderedDict()
        if self.page_ref is None:
            return self.entries
        for entry in self.gateway.list_history_for_page(self.page_ref):
            self.entries[entry.history_id] = entry
        return self.entries

    def _get_entry(self, history_id: str) -> OverlayEntry:
        entry = self.entries.get(history_id)
        if entry is None:
            raise EntryNotFoundError('history', history_id)
        return entry

    def toggle_visibility(self, history_id: str) -> bool:
        """Flip and persist an entry's visible flag. Returns the new value."""
        entry = self._get_entry(history_id)
        visible = not entry.visible
        self.gateway.set_history_visibility(history_id, visible)
        self.entries[history_id] = entry.with_visibility(visible)
        return visible

    def delete_entry(self, history_id: str) -> None:
        self._get_entry(history_id)
        self.gateway.delete_history_entry(history_id)
        del self.entries[history_id]

    def promote_entry_to_vault(self, history_id: str) -> str:
        """Save a persisted history entry's text into the vault."""
        entry = self._get_entry(history_id)
        return self.gateway.create_vault_entry(entry.result)

    def visible_entries(self) -> List[OverlayEntry]:
        return [entry for entry in self.entries.values() if entry.visible]

    # ── Rendering ────────────────────────────────────────────

    @staticmethod
    def render_box(entry: OverlayEntry, image_box: AbsoluteBox) -> AbsoluteBox:
        """Pixel position of an entry against the image as rendered right now."""
        return region_to_box(entry.region, image_box)

    def render_boxes(self, image_box: AbsoluteBox) -> List[Tuple[OverlayEntry, AbsoluteBox]]:
        """Positions of the active entry (if any) and all visible history entries."""
        boxes = []
        if self.active is not None:
            boxes.append((self.active, self.render_box(self.active, image_box)))
        for entry in self.visible_entries():
            boxes.append((entry, self.render_box(entry, image_box)))
        return boxes
