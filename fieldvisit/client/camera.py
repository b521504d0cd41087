from typing import Any, Optional, Protocol

from fieldvisit.client.photos import Photo


class Camera(Protocol):
    def start(self) -> Any:
        """Open the device and return a stream handle."""

    def grab_frame(self, stream: Any) -> bytes:
        """JPEG bytes of the current frame."""

    def stop(self, stream: Any) -> None:
        """Release the device."""


class CameraClosedError(RuntimeError):
    pass


class CameraView:
    """
    A live camera preview. The device stream is released exactly once, on
    capture, on cancel, or when the view is torn down, whichever comes first.

        with CameraView(camera) as view:
            photo = view.capture()
    """

    def __init__(self, camera: Camera):
        self.camera = camera
        self._stream: Optional[Any] = None
        self._captures = 0

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def open(self) -> "CameraView":
        if self._stream is None:
            self._stream = self.camera.start()
        return self

    def capture(self) -> Photo:
        if self._stream is None:
            raise CameraClosedError("Camera is not open")
        try:
            data = self.camera.grab_frame(self._stream)
        finally:
            self.release()
        self._captures += 1
        return Photo(filename=f"camera-{self._captures}.jpg", content_type="image/jpeg", data=data)

    def cancel(self) -> None:
        self.release()

    def release(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            self.camera.stop(stream)

    def __enter__(self) -> "CameraView":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
