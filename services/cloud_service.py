import io
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Optional
import httplib2
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload
import config
from core.errors import FormatError, SyncError
from services.cache_service import DurableCache
from services.transfer_codec import decode, encode

logger = logging.getLogger(__name__)

# Network-level failures of the Drive client
REMOTE_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


class AuthState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class DriveSync:
    """
    Mirrors the whole roster to ONE JSON file (config.REMOTE_FILE_NAME) in the
    user's Google Drive. Only files created by this app are visible (drive.file scope).

    Every call is one-shot and user-triggered: no retries, no background loop,
    and the last writer wins.
    """

    def __init__(self, cache: DurableCache,
                 credentials_file: Optional[Path] = None,
                 token_file: Optional[Path] = None):
        self.cache = cache
        self.credentials_file = Path(credentials_file or config.CREDENTIALS_FILE or "credentials.json")
        self.token_file = Path(token_file or config.TOKEN_FILE or "token.json")
        self.state = AuthState.UNAUTHENTICATED
        self._service = None

    # --- AUTHENTICATION ---

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    def authenticate(self) -> None:
        """
        Logs in to Google Drive, reusing token.json when possible.
        Opens the browser consent screen the first time.

        Raises:
            SyncError: If credentials.json is missing or the login fails.
        """
        if self.is_authenticated:
            return

        if not self.credentials_file.exists():
            raise SyncError("Missing credentials.json! Please download it from Google Cloud Console.")

        self.state = AuthState.AUTHENTICATING
        creds = None

        # Load existing tokens if the user has logged in before
        if self.token_file.exists():
            try:
                creds = Credentials.from_authorized_user_file(str(self.token_file), config.SCOPES)
            except ValueError as e:
                # If token is corrupt or format changed, ignore it and re-login
                logger.info("Ignoring unreadable token file: %s", e)
                creds = None

        try:
            if not creds or not creds.valid:
                if creds and creds.expired and creds.refresh_token:
                    creds.refresh(Request())
                else:
                    flow = InstalledAppFlow.from_client_secrets_file(str(self.credentials_file), config.SCOPES)
                    creds = flow.run_local_server(port=0)

                # Save tokens for next time
                with open(self.token_file, 'w') as token:
                    token.write(creds.to_json())

            self._service = build('drive', 'v3', credentials=creds, cache_discovery=False)
        except Exception as e:
            self.state = AuthState.UNAUTHENTICATED
            self._service = None
            logger.error("Google Drive authentication failed: %s", e)
            raise SyncError(f"Authentication failed: {e}") from e

        self.state = AuthState.AUTHENTICATED
        logger.info("Authenticated with Google Drive")

    def sign_out(self) -> None:
        """Forgets the session and the saved token."""
        self._service = None
        self.state = AuthState.UNAUTHENTICATED
        try:
            self.token_file.unlink()
        except FileNotFoundError:
            pass

    def _drive(self):
        if not self.is_authenticated or self._service is None:
            raise SyncError("Chưa đăng nhập Google Drive.")
        return self._service

    # --- REMOTE FILE ---

    def _cached_id_is_live(self, file_id: str) -> bool:
        try:
            meta = self._drive().files().get(fileId=file_id, fields='id, trashed').execute()
        except HttpError as e:
            if e.resp.status == 404:
                return False
            raise
        return not meta.get('trashed', False)

    def locate_remote_object(self) -> Optional[str]:
        """
        Finds the sync file WITHOUT creating it.

        Returns:
            str: The Drive file ID, or None if the file does not exist.

        Raises:
            SyncError: On authentication or network failure.
        """
        drive = self._drive()
        try:
            cached = self.cache.get_remote_file_id()
            if cached:
                if self._cached_id_is_live(cached):
                    return cached
                logger.info("Cached Drive file %s is gone, searching again", cached)
                self.cache.clear_remote_file_id()

            query = f"name='{config.REMOTE_FILE_NAME}' and trashed=false"
            response = drive.files().list(q=query, spaces='drive', fields='files(id, name)', pageSize=1).execute()
        except REMOTE_ERRORS as e:
            raise SyncError(f"Could not search Google Drive: {e}") from e

        files = response.get('files', [])
        if not files:
            return None

        file_id = files[0]['id']
        self.cache.set_remote_file_id(file_id)
        return file_id

    def locate_or_create_remote_object(self) -> str:
        """
        Returns the sync file ID, creating an empty roster file if there is none.

        Raises:
            SyncError: On authentication or network failure.
        """
        file_id = self.locate_remote_object()
        if file_id:
            return file_id

        file_metadata = {'name': config.REMOTE_FILE_NAME, 'mimeType': config.REMOTE_MIME_TYPE}
        media = MediaIoBaseUpload(io.BytesIO(b"[]"), mimetype=config.REMOTE_MIME_TYPE)
        try:
            file = self._drive().files().create(body=file_metadata, media_body=media, fields='id').execute()
        except REMOTE_ERRORS as e:
            raise SyncError(f"Could not create file on Google Drive: {e}") from e

        file_id = file.get('id')
        self.cache.set_remote_file_id(file_id)
        logger.info("Created Drive sync file %s", file_id)
        return file_id

    def push(self, records: Iterable[Any]) -> str:
        """
        Overwrites the Drive file with the full roster (multipart upload).
        Local data is never touched, even on failure.

        Returns:
            str: The Drive file ID.

        Raises:
            SyncError: On authentication or network failure.
        """
        payload = encode(records).encode("utf-8")
        file_id = self.locate_or_create_remote_object()

        media = MediaIoBaseUpload(io.BytesIO(payload), mimetype=config.REMOTE_MIME_TYPE, resumable=False)
        try:
            self._drive().files().update(
                fileId=file_id,
                body={'mimeType': config.REMOTE_MIME_TYPE},
                media_body=media,
                fields='id',
            ).execute()
        except REMOTE_ERRORS as e:
            logger.error("Push to Google Drive failed: %s", e)
            raise SyncError(f"Upload failed: {e}") from e

        logger.info("Pushed %d bytes to Drive file %s", len(payload), file_id)
        return file_id

    def pull(self) -> List[Any]:
        """
        Downloads and decodes the Drive file. The result is NOT applied;
        callers must route it through the ReplaceGate.

        Returns:
            List: The decoded (not yet validated) records.

        Raises:
            SyncError: If the file does not exist, cannot be downloaded, or is not a roster.
        """
        file_id = self.locate_remote_object()
        if not file_id:
            raise SyncError("Không tìm thấy file dữ liệu trên Google Drive.")

        try:
            content = self._drive().files().get_media(fileId=file_id).execute()
        except REMOTE_ERRORS as e:
            logger.error("Pull from Google Drive failed: %s", e)
            raise SyncError(f"Download failed: {e}") from e

        try:
            return decode(content)
        except FormatError as e:
            raise SyncError(f"Drive file is not a valid roster: {e}") from e
