"""Domain error types."""


class RecorderStartError(Exception):
    """Raised when the microphone recorder cannot start."""

    user_message = 'Could not start recording'


class MicrophonePermissionError(RecorderStartError):
    """Raised when access to the microphone is denied."""

    user_message = 'Microphone access was denied'


class DeviceUnavailableError(RecorderStartError):
    """Raised when no input device is available."""

    user_message = 'No microphone found'


class DeviceError(RecorderStartError):
    """Raised when the input device fails or is busy."""

    user_message = 'Microphone error'


class StoreError(Exception):
    """Raised when the practice store cannot complete an operation."""


class ClipNotFoundError(StoreError):
    """Raised when a clip id does not exist in the store."""


class PlaybackUrlError(StoreError):
    """Raised when a playback URL is expired, tampered with, or cannot be issued."""
