from fastapi import Request

from radiodeck.services.directory_client import DirectoryClient


def get_directory_client(request: Request) -> DirectoryClient:
    """The app-wide directory client; its mirror cache lives as long as the app."""
    client = getattr(request.app.state, "directory_client", None)
    if client is None:
        client = DirectoryClient()
        request.app.state.directory_client = client
    return client
