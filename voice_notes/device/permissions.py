"""
Microphone and storage permission checks.

Permission identifiers depend on the platform; they are resolved once per
call and handed in one batch to a backend that queries or requests them.
A permission set counts as granted only when every member is granted.
"""

from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, Iterable, Optional
import logging
import sys

logger = logging.getLogger(__name__)


class PermissionStatus:
    """Outcomes a backend can report for one permission."""
    GRANTED = "granted"
    DENIED = "denied"
    BLOCKED = "blocked"
    UNAVAILABLE = "unavailable"
    LIMITED = "limited"


ANDROID_RECORD_AUDIO = "android.permission.RECORD_AUDIO"
ANDROID_READ_STORAGE = "android.permission.READ_EXTERNAL_STORAGE"
ANDROID_WRITE_STORAGE = "android.permission.WRITE_EXTERNAL_STORAGE"
IOS_MICROPHONE = "ios.permission.MICROPHONE"
DESKTOP_MICROPHONE = "microphone"


def current_platform() -> str:
    """Name of the running platform ('android', 'ios', 'darwin', 'linux', 'win32', ...)."""
    return sys.platform


def resolve_audio_permissions(platform_name: str) -> FrozenSet[str]:
    """Permission identifiers needed to record audio on a platform."""
    if platform_name == "android":
        return frozenset({ANDROID_RECORD_AUDIO})
    if platform_name == "ios":
        return frozenset({IOS_MICROPHONE})
    return frozenset({DESKTOP_MICROPHONE})


def resolve_storage_permissions(platform_name: str) -> FrozenSet[str]:
    """Permission identifiers needed to read and write shared storage."""
    if platform_name == "android":
        return frozenset({ANDROID_WRITE_STORAGE, ANDROID_READ_STORAGE})
    return frozenset()


class PermissionBackend(ABC):
    """Platform API that queries and requests permissions in batches."""

    @abstractmethod
    def check_multiple(self, permissions: Iterable[str]) -> Dict[str, str]:
        """Return the current status of each permission."""
        pass

    @abstractmethod
    def request_multiple(self, permissions: Iterable[str]) -> Dict[str, str]:
        """Ask for each permission and return the resulting status."""
        pass


class PyAudioPermissionBackend(PermissionBackend):
    """
    Desktop backend that probes microphone access through PyAudio.

    Desktop systems have no query API for microphone consent. Opening an
    input stream is what makes macOS show its consent prompt, and it fails
    with OSError while access is denied, so the probe doubles as the request.

    Args:
        sample_rate: Sample rate used for the probe stream
        chunk_size: Frames read when requesting access
    """

    def __init__(self, sample_rate: int = 16000, chunk_size: int = 512):
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size

    def check_multiple(self, permissions: Iterable[str]) -> Dict[str, str]:
        return {p: self._status(p, read=False) for p in permissions}

    def request_multiple(self, permissions: Iterable[str]) -> Dict[str, str]:
        return {p: self._status(p, read=True) for p in permissions}

    def _status(self, permission: str, read: bool) -> str:
        if permission != DESKTOP_MICROPHONE:
            return PermissionStatus.UNAVAILABLE
        return self._probe_microphone(read)

    def _probe_microphone(self, read: bool) -> str:
        """Open (and optionally read from) the default input device."""
        import pyaudio

        audio = pyaudio.PyAudio()
        try:
            if not self._has_input_devices(audio):
                return PermissionStatus.UNAVAILABLE

            try:
                stream = audio.open(
                    format=pyaudio.paInt16,
                    channels=1,
                    rate=self.sample_rate,
                    input=True,
                    frames_per_buffer=self.chunk_size,
                )
            except OSError as e:
                logger.warning(f"Microphone stream could not be opened: {e}")
                return PermissionStatus.DENIED

            try:
                if read:
                    stream.read(self.chunk_size, exception_on_overflow=False)
            except OSError as e:
                logger.warning(f"Microphone read failed: {e}")
                return PermissionStatus.DENIED
            finally:
                stream.close()

            return PermissionStatus.GRANTED
        finally:
            audio.terminate()

    @staticmethod
    def _has_input_devices(audio) -> bool:
        for i in range(audio.get_device_count()):
            device_info = audio.get_device_info_by_index(i)
            if device_info.get('maxInputChannels', 0) > 0:
                return True
        return False


class PermissionGate:
    """
    Checks and requests the permissions the app needs.

    Every method reports failure as False instead of raising, so callers
    can treat the gate as a plain yes/no question.

    Example:
        >>> gate = PermissionGate(PyAudioPermissionBackend())
        >>> if not gate.request_audio_permission():
        ...     print("Microphone access denied")
    """

    def __init__(self, backend: PermissionBackend, platform_name: Optional[str] = None):
        self.backend = backend
        self.platform_name = platform_name or current_platform()

    def check_audio_permission(self) -> bool:
        """Check whether audio recording is currently allowed."""
        permissions = resolve_audio_permissions(self.platform_name)
        try:
            granted = self._all_granted(self.backend.check_multiple(sorted(permissions)), permissions)
        except Exception as e:
            logger.error(f"Error checking audio permission: {e}")
            return False

        logger.info(f"Audio permission check: {'granted' if granted else 'denied'}")
        return granted

    def request_audio_permission(self) -> bool:
        """Request audio recording permission unless it is already granted."""
        if self.check_audio_permission():
            logger.info("Audio permission already granted")
            return True

        permissions = resolve_audio_permissions(self.platform_name)
        try:
            granted = self._all_granted(self.backend.request_multiple(sorted(permissions)), permissions)
        except Exception as e:
            logger.error(f"Error requesting audio permission: {e}")
            return False

        logger.info(f"Audio permission {'granted' if granted else 'denied'}")
        return granted

    def request_storage_permission(self) -> bool:
        """Request shared-storage permissions; trivially granted where none exist."""
        permissions = resolve_storage_permissions(self.platform_name)
        if not permissions:
            return True

        try:
            granted = self._all_granted(self.backend.request_multiple(sorted(permissions)), permissions)
        except Exception as e:
            logger.warning(f"Error requesting storage permission: {e}")
            return False

        if granted:
            logger.info("Storage permissions granted")
        else:
            logger.info("Storage permissions denied")
        return granted

    @staticmethod
    def _all_granted(statuses: Dict[str, str], permissions: FrozenSet[str]) -> bool:
        return all(statuses.get(p) == PermissionStatus.GRANTED for p in permissions)
