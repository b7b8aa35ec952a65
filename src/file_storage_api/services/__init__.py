"""
File Storage API services.

Business operations behind the HTTP routes: issuing presigned URLs, listing
and deleting uploads.
"""

from .file_service import FileService

__all__ = ['FileService']
