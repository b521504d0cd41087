"""
Visit entry flow for field agents.

Two steps: the agent first enters a loan number, then fills the visit form.
Entering the form starts location capture and loads the agent's previous
visits for that loan at the same time; both finish in the background and
update their own part of the state.
"""
import logging
import re
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from fieldvisit.client.api import ApiClient, ApiError
from fieldvisit.client.camera import Camera, CameraView
from fieldvisit.client.geo import GeoState, GeoStatus, Locator, locate, resolve_address
from fieldvisit.client.photos import Photo, PhotoTray
from fieldvisit.schemas.enums import VisitStatus

logger = logging.getLogger(__name__)

LOAN_NUMBER_PATTERN = re.compile(r"[0-9]{21}")


class Step(str, Enum):
    loan_entry = "loan-entry"
    visit_form = "visit-form"


@dataclass
class VisitForm:
    person_visited: str = ""
    status: Optional[VisitStatus] = None
    comments: str = ""
    ptp_date: Optional[date] = None
    ptp_amount: Optional[float] = None


class VisitEntryFlow:
    def __init__(self, api: ApiClient, locator: Optional[Locator] = None, max_workers: int = 2):
        self.api = api
        self.locator = locator
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="visit-flow")
        self._lock = threading.Lock()
        self._pending: List[Future] = []
        # Bumped on every loan change so late results for an old loan are dropped
        self._generation = 0
        self._closed = False

        self.step = Step.loan_entry
        self.loan_number = ""
        self.loan_error = ""

        self.form = VisitForm()
        self.photos = PhotoTray()
        self.geo = GeoState()

        self.submitting = False
        self.submit_error = ""
        self.last_submitted: Optional[Dict[str, Any]] = None

        self.past_visits: List[Dict[str, Any]] = []
        self.loading_past = False

    # ---- step 1 ----

    def submit_loan_number(self, text: str) -> bool:
        value = (text or "").strip()
        if not LOAN_NUMBER_PATTERN.fullmatch(value):
            self.loan_error = "Loan number must be exactly 21 numeric digits"
            return False
        self.loan_error = ""
        self.loan_number = value
        self._enter_visit_form()
        return True

    def change_loan(self) -> None:
        with self._lock:
            self._generation += 1
            self.step = Step.loan_entry
            self.loan_number = ""
            self.geo = GeoState()
            self.past_visits = []
            self.loading_past = False
        self._reset_form()
        self.submit_error = ""

    def _enter_visit_form(self) -> None:
        with self._lock:
            self._generation += 1
            self.step = Step.visit_form
        self.retry_location()
        self.reload_past_visits()

    # ---- background work ----

    def retry_location(self) -> None:
        with self._lock:
            generation = self._generation
            self.geo = GeoState(status=GeoStatus.requesting)
        self._spawn(self._acquire_location, generation)

    def reload_past_visits(self) -> None:
        with self._lock:
            generation = self._generation
            loan_number = self.loan_number
            self.loading_past = True
        self._spawn(self._load_past_visits, generation, loan_number)

    def _acquire_location(self, generation: int) -> None:
        state = locate(self.locator)
        if not self._apply(generation, geo=state):
            return
        if state.status == GeoStatus.granted:
            self._apply(generation, geo=resolve_address(state, self.api.reverse_geocode))

    def _load_past_visits(self, generation: int, loan_number: str) -> None:
        try:
            visits = self.api.get_my_visits(loan_number)
        except ApiError as e:
            logger.warning("Could not load past visits for %s: %s", loan_number, e.message)
            visits = []
        self._apply(generation, past_visits=visits, loading_past=False)

    def _apply(self, generation: int, **changes) -> bool:
        with self._lock:
            if self._closed or generation != self._generation:
                return False
            for name, value in changes.items():
                setattr(self, name, value)
            return True

    def _spawn(self, fn, *args) -> None:
        if self._closed:
            return
        future = self._executor.submit(fn, *args)
        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)

    def wait_idle(self, timeout: Optional[float] = None) -> None:
        """Block until the background work started so far has finished."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def close(self) -> None:
        """Tear the flow down; in-flight work still finishes but its results are dropped."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=False)

    # ---- photos ----

    def add_photos(self, files: Iterable[Photo]) -> Optional[str]:
        return self.photos.add(files)

    def capture_photo(self, camera: Camera) -> Optional[str]:
        with CameraView(camera) as view:
            photo = view.capture()
        return self.photos.add([photo])

    def remove_photo(self, index: int) -> None:
        self.photos.remove(index)

    # ---- step 2 ----

    @property
    def can_submit(self) -> bool:
        return not self.submitting and self.geo.status not in (GeoStatus.requesting, GeoStatus.denied)

    def _check_form(self) -> Optional[str]:
        if not self.geo.has_position:
            return "Location access is required to submit visit."
        if len(self.photos) == 0:
            return "At least 1 photo is required."
        form = self.form
        if not form.person_visited.strip() or form.status is None or not form.comments.strip():
            return "All fields are required."
        if form.status == VisitStatus.ptp:
            if form.ptp_date is None:
                return "PTP Date is required."
            if form.ptp_amount is None or not form.ptp_amount > 0:
                return "PTP Amount must be a positive number."
        return None

    def build_payload(self, photo_urls: List[str]) -> Dict[str, Any]:
        form = self.form
        payload = {
            "loan_number": self.loan_number,
            "person_visited": form.person_visited.strip(),
            "status": form.status.value,
            "comments": form.comments.strip(),
            "photo_urls": photo_urls,
            "latitude": self.geo.latitude,
            "longitude": self.geo.longitude,
            "address": self.geo.address,
        }
        if form.status == VisitStatus.ptp:
            payload["ptp_date"] = form.ptp_date.isoformat()
            payload["ptp_amount"] = form.ptp_amount
        return payload

    def submit(self) -> bool:
        """Upload photos and submit the visit. The flow stays on the form either way."""
        self.submit_error = ""
        if self.step != Step.visit_form or not self.can_submit:
            return False

        problem = self._check_form()
        if problem:
            self.submit_error = problem
            return False

        self.submitting = True
        try:
            photo_urls = self.api.upload_photos(self.photos.photos)
            self.last_submitted = self.api.submit_visit(self.build_payload(photo_urls))
        except ApiError as e:
            self.submit_error = e.message or "Failed to submit visit"
            return False
        finally:
            self.submitting = False

        self._reset_form()
        self.reload_past_visits()
        return True

    def _reset_form(self) -> None:
        self.form = VisitForm()
        self.photos.clear()
