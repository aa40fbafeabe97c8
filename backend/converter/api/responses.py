"""Responses that own a request workspace."""
from starlette.responses import FileResponse
from starlette.types import Receive, Scope, Send

from converter.conversion.workspace import Workspace


class WorkspaceFileResponse(FileResponse):
    """Stream a file out of a workspace, then delete the workspace.

    Cleanup runs in a finally block, so it also happens when the client
    disconnects mid-stream or sending fails.
    """

    def __init__(self, path, workspace: Workspace, **kwargs):
        super().__init__(path, **kwargs)
        self.workspace = workspace

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.workspace.cleanup()
