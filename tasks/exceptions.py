"""Exceptions for the task store."""


class TaskError(Exception):
    """Base exception for task errors."""
    pass


class TaskNotFound(TaskError):
    def __init__(self, task_id):
        self.task_id = task_id
        super().__init__("Task not found")


class TaskValidationError(TaskError):
    """Invalid task fields. ``errors`` maps field name -> list of messages."""

    def __init__(self, errors: dict):
        self.errors = errors
        messages = [msg for field_messages in errors.values() for msg in field_messages]
        super().__init__(f"Validation failed: {', '.join(messages)}")


class TaskServiceError(TaskError):
    """Persistence failure while mutating or reading tasks."""
    pass
