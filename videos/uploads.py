"""Request-body limits applied before Django spools multipart files to disk."""
from django.core.files.uploadhandler import FileUploadHandler, StopUpload


class MaxBytesUploadHandler(FileUploadHandler):
    """
    First handler in the chain: counts file bytes as they arrive and aborts
    the parse once the total goes past ``max_bytes``. Later handlers never
    see the chunk that crossed the limit.
    """

    def __init__(self, request=None, max_bytes: int = 0):
        super().__init__(request)
        self.max_bytes = max_bytes
        self.received = 0
        self.exceeded = False

    def receive_data_chunk(self, raw_data, start):
        self.received += len(raw_data)
        if self.received > self.max_bytes:
            self.exceeded = True
            raise StopUpload(connection_reset=True)
        return raw_data

    def file_complete(self, file_size):
        return None


def declared_length(request) -> int | None:
    try:
        return int(request.META.get("CONTENT_LENGTH") or "")
    except ValueError:
        return None
