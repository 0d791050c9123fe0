"""Custom exceptions for the TFS bridge"""


class TfsBridgeException(Exception):
    """Base exception for bridge errors"""
    pass


class TaskNotFoundException(TfsBridgeException):
    """Raised when a work item id does not resolve"""
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Work item {task_id} not found")


class UpdateFailedException(TfsBridgeException):
    """Raised when a work item patch returns no item"""
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Work item {task_id} update failed")


class APIException(TfsBridgeException):
    """Raised when external API call fails"""
    def __init__(self, service: str, message: str, status_code: int = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service} API error: {message}")


class SourceUnavailableException(APIException):
    """Raised when a data source cannot be reached or rejects the request"""
    pass


class ValidationException(TfsBridgeException):
    """Raised when request data validation fails"""
    pass
