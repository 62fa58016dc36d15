"""
Error taxonomy for the messaging core

Realtime errors (ProtocolError, TransportError) never leave the socket loop;
lifecycle errors (NotFound, InvalidTransition, TaskAccessDenied, StoreError)
are translated into HTTP responses by the domain services.
"""


class UstadgeeError(Exception):
    """Base class for application errors"""


class ProtocolError(UstadgeeError):
    """Malformed or disallowed inbound frame"""


class TransportError(UstadgeeError):
    """Send to a closed or failing connection"""


class StoreError(UstadgeeError):
    """Persistence failure in the data store"""


class NotFound(UstadgeeError):
    """Referenced entity does not exist"""


class TaskNotFound(NotFound):
    def __init__(self, task_id):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class InvalidTransition(UstadgeeError):
    def __init__(self, message: str, current_status=None, new_status=None):
        super().__init__(message)
        self.current_status = current_status
        self.new_status = new_status


class TaskAccessDenied(UstadgeeError):
    """Actor is neither the requester nor the provider of the task"""
