from useraware.auth.httpx.base_client import UserAwareAsyncClient

__all__ = ["UserAwareAsyncClient"]
