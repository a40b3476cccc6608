# Shared message models for the remote command agent protocol
from enum import Enum
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field  # Data validation and serialization

# Operation id used by reports that are not correlated with a controller operation
UNTRACKED_OPERATION = -1

# UploadProgress percentage meaning the transfer has finished
UPLOAD_FINISHED = -1


class MessageType(str, Enum):
    """
    Enumeration of message types exchanged between controller and agent.

    The value of each member is the ``type`` discriminator carried on the wire,
    so the set of members is the closed set of protocol variants.
    """

    GREET = "greet"                              # Agent identity, sent after connecting
    PING = "ping"                                # Liveness probe from the controller
    PONG = "pong"                                # Liveness response from the agent
    DO_YOUR_DUTY = "do_your_duty"                # Reserved no-op command
    NAVIGATE_TO_FOLDER = "navigate_to_folder"    # List a directory
    DELETE_FILE = "delete_file"                  # Remove a file
    DOWNLOAD_FILE_PART = "download_file_part"    # One chunk of a file transfer to the controller
    UPLOAD_FILE = "upload_file"                  # Fetch a remote resource into a local path
    STATUS_UPDATE = "status_update"              # Terminal or error report for an operation
    UPLOAD_PROGRESS = "upload_progress"          # Progress report for an upload


class FileMeta(BaseModel):
    """A single entry of a folder listing."""

    name: str
    path: str
    is_directory: bool
    size: int = 0


class GreetMessage(BaseModel):
    """
    Identity snapshot the agent sends once per (re)connection.

    Attributes:
        ip: Best-guess externally reachable address of the agent host
        machine_name: Network name of the host
        user_name: Account the agent process runs as
        os_version: Human readable operating system description
    """

    type: Literal["greet"] = "greet"
    ip: str
    machine_name: str
    user_name: str
    os_version: str


class PingMessage(BaseModel):
    type: Literal["ping"] = "ping"


class PongMessage(BaseModel):
    type: Literal["pong"] = "pong"


class DoYourDutyMessage(BaseModel):
    type: Literal["do_your_duty"] = "do_your_duty"


class NavigateToFolderMessage(BaseModel):
    """
    Folder navigation command and its reply.

    The controller sends only ``path``; the agent answers with the resolved
    path and the folder content in ``files``.
    """

    type: Literal["navigate_to_folder"] = "navigate_to_folder"
    path: str
    files: List[FileMeta] = []


class DeleteFileMessage(BaseModel):
    type: Literal["delete_file"] = "delete_file"
    file_path: str


class DownloadFilePartMessage(BaseModel):
    """
    One chunk of a multi-part file transfer from the agent to the controller.

    The controller requests ``current_part`` (1-based) of ``path``; the agent
    replies with the same message carrying ``total_part`` and the chunk bytes
    base64-encoded in ``data``. The transfer is complete once
    ``current_part == total_part``.
    """

    type: Literal["download_file_part"] = "download_file_part"
    operation_id: int
    path: str
    current_part: int = 1
    total_part: int = 0
    data: str = ""


class UploadFileMessage(BaseModel):
    type: Literal["upload_file"] = "upload_file"
    operation_id: int
    path: str  # Local destination
    uri: str   # Remote resource to fetch


class StatusUpdateMessage(BaseModel):
    """
    Terminal or error report for any operation.

    Attributes:
        operation_id: Correlation id of the operation, -1 when not tracked
        operation_name: Human readable operation label (e.g. "File deletion")
        success: Whether the operation succeeded
        message: Success description or error text
    """

    type: Literal["status_update"] = "status_update"
    operation_id: int = UNTRACKED_OPERATION
    operation_name: str
    success: bool
    message: str


class UploadProgressMessage(BaseModel):
    type: Literal["upload_progress"] = "upload_progress"
    operation_id: int
    path: str
    uri: str
    percentage: int  # 0..100, or UPLOAD_FINISHED


# Closed tagged union of every protocol variant, discriminated on ``type``
Message = Annotated[
    Union[
        GreetMessage,
        PingMessage,
        PongMessage,
        DoYourDutyMessage,
        NavigateToFolderMessage,
        DeleteFileMessage,
        DownloadFilePartMessage,
        UploadFileMessage,
        StatusUpdateMessage,
        UploadProgressMessage,
    ],
    Field(discriminator="type"),
]
