from __future__ import annotations


class ModerationError(Exception):
    pass


class ValidationError(ModerationError):
    def __init__(self, errors: list[str]):
        super().__init__(f"Invalid submission: {', '.join(errors)}")
        self.errors = errors


class UnauthorizedError(ModerationError):
    def __init__(self, actor: object, action: str):
        super().__init__(f"Actor {actor!r} is not allowed to {action}")
        self.actor = actor
        self.action = action


class SubtitleNotFoundError(ModerationError):
    def __init__(self, subtitle_id: str, partition: str):
        super().__init__(f"Subtitle not found in {partition}: {subtitle_id}")
        self.subtitle_id = subtitle_id
        self.partition = partition


class StoreUnavailableError(ModerationError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Subtitle store unavailable during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class BlobStoreError(ModerationError):
    def __init__(self, object_key: str, reason: str, action: str = "access"):
        super().__init__(f"Failed to {action} {object_key}: {reason}")
        self.object_key = object_key
        self.reason = reason


class BlobUploadError(BlobStoreError):
    def __init__(self, object_key: str, reason: str = "Upload failed"):
        super().__init__(object_key, reason, action="upload")


class ConfigurationError(ModerationError):
    def __init__(self, errors: list[str]):
        super().__init__(f"Configuration errors: {', '.join(errors)}")
        self.errors = errors
