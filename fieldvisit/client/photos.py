import base64
from dataclasses import dataclass
from typing import Iterable, List, Optional

ALLOWED_TYPES = ("image/jpeg", "image/png")
MAX_PHOTOS = 5
MAX_TOTAL_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class Photo:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def preview_data_url(self) -> str:
        return f"data:{self.content_type};base64,{base64.b64encode(self.data).decode('ascii')}"


class PhotoTray:
    """
    Photos collected for one visit, from the camera and from files alike.

    A batch is accepted whole or not at all: the first file that breaks a
    limit sets ``error`` and nothing from that batch is kept.
    """

    def __init__(self):
        self._photos: List[Photo] = []
        self.error: str = ""

    @property
    def photos(self) -> List[Photo]:
        return list(self._photos)

    @property
    def total_size(self) -> int:
        return sum(photo.size for photo in self._photos)

    def __len__(self) -> int:
        return len(self._photos)

    def add(self, files: Iterable[Photo]) -> Optional[str]:
        """Add a batch; returns the error message when the batch is rejected."""
        self.error = ""
        accepted: List[Photo] = []
        total = self.total_size

        for photo in files:
            if photo.content_type not in ALLOWED_TYPES:
                return self._reject("Only JPEG and PNG files are allowed")
            if len(self._photos) + len(accepted) >= MAX_PHOTOS:
                return self._reject("Maximum 5 photos allowed")
            total += photo.size
            if total > MAX_TOTAL_BYTES:
                return self._reject("Total photo size must not exceed 10 MB")
            accepted.append(photo)

        self._photos.extend(accepted)
        return None

    def remove(self, index: int) -> None:
        del self._photos[index]
        self.error = ""

    def previews(self) -> List[str]:
        return [photo.preview_data_url() for photo in self._photos]

    def clear(self) -> None:
        self._photos = []
        self.error = ""

    def _reject(self, message: str) -> str:
        self.error = message
        return message
