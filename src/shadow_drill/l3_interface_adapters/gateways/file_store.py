"""Gateway: file-based practice store — implements PracticeStore port.

Layout under the storage root::

    clips/<clip_id>.json
    recordings/<user_id>/<clip_id>.wav     audio, overwritten on every save
    recordings/<user_id>/<clip_id>.json    Recording metadata
    history/<user_id>.jsonl                one line per practice session
    stats/<user_id>.json                   streak bookkeeping
    favorites/<user_id>.json               list of clip ids
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
import logging
import re
import secrets
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from urllib.parse import parse_qs, quote, unquote, urlencode, urlparse

from pydantic import ValidationError

from shadow_drill.l1_entities.clip import Clip
from shadow_drill.l1_entities.errors import ClipNotFoundError, PlaybackUrlError, StoreError
from shadow_drill.l1_entities.recording import AudioBlob, PlaybackUrl, Recording, recording_storage_path
from shadow_drill.l1_entities.user_stats import UserStats
from shadow_drill.l2_use_cases.streak_use_case import advance_streak

log = logging.getLogger('shd.persist')

_SAFE_NAME = re.compile(r'^[\w\-.]+$')


def _safe_name(value: str) -> str:
    if not _SAFE_NAME.match(value) or value in ('.', '..'):
        raise StoreError(f'Invalid identifier: {value!r}')
    return value


class FilePracticeStore:
    """Persists clips, recordings, history, streaks and favorites to the filesystem."""

    def __init__(self, root: Path, signing_key: str = '') -> None:
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)
        self._signing_key = (signing_key or self._load_or_create_key()).encode('utf-8')

    @property
    def root(self) -> Path:
        return self._root

    # --- Clips ---

    async def get_clip(self, clip_id: str) -> Clip:
        return await asyncio.to_thread(self._read_clip, clip_id)

    async def list_clips(self) -> list[Clip]:
        return await asyncio.to_thread(self._list_clips)

    async def save_clip(self, clip: Clip) -> Clip:
        path = self._clips_dir() / f'{_safe_name(clip.id)}.json'
        await asyncio.to_thread(self._write_text, path, clip.model_dump_json(indent=2))
        log.info('Saved clip %s (%d segments)', clip.id, len(clip.transcript))
        return clip

    # --- Recordings ---

    async def get_recording(self, user_id: str, clip_id: str) -> Recording | None:
        return await asyncio.to_thread(self._read_recording, user_id, clip_id)

    async def save_recording(self, user_id: str, clip_id: str, blob: AudioBlob) -> Recording:
        return await asyncio.to_thread(self._write_recording, user_id, clip_id, blob)

    async def delete_recording(self, user_id: str, clip_id: str) -> None:
        await asyncio.to_thread(self._remove_recording, user_id, clip_id)

    async def get_signed_playback_url(self, storage_path: str, ttl_seconds: int) -> PlaybackUrl:
        path = self._recording_file(storage_path)
        if not path.exists():
            raise PlaybackUrlError(f'No recording stored at {storage_path}')
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
        expires = str(int(expires_at.timestamp()))
        query = urlencode({'expires': expires, 'signature': self._sign(storage_path, expires)})
        url = f'{path.resolve().as_uri()}?{query}'
        return PlaybackUrl(url=url, expires_at=datetime.fromtimestamp(int(expires), tz=timezone.utc))

    def resolve_playback_url(self, url: str, now: datetime | None = None) -> Path:
        """Verify a URL issued by ``get_signed_playback_url`` and return the audio file."""
        parsed = urlparse(url)
        params = parse_qs(parsed.query)
        try:
            expires = params['expires'][0]
            signature = params['signature'][0]
        except (KeyError, IndexError) as e:
            raise PlaybackUrlError('Playback URL is missing its signature') from e

        path = Path(unquote(parsed.path))
        try:
            storage_path = path.resolve().relative_to(self._recordings_dir().resolve()).as_posix()
        except ValueError as e:
            raise PlaybackUrlError('Playback URL points outside the recordings store') from e

        if not hmac.compare_digest(signature, self._sign(storage_path, expires)):
            raise PlaybackUrlError('Playback URL signature mismatch')
        now = now or datetime.now(timezone.utc)
        if now.timestamp() >= int(expires):
            raise PlaybackUrlError('Playback URL has expired')
        return path

    # --- History, streaks, favorites ---

    async def record_practice_event(self, user_id: str, clip_id: str, timestamp: datetime) -> None:
        line = json.dumps({'clip_id': clip_id, 'practiced_at': timestamp.isoformat()})
        path = self._root / 'history' / f'{_safe_name(user_id)}.jsonl'
        await asyncio.to_thread(self._append_line, path, line)

    async def update_streak(self, user_id: str) -> UserStats:
        return await asyncio.to_thread(self._advance_streak, user_id, date.today())

    async def get_stats(self, user_id: str) -> UserStats | None:
        return await asyncio.to_thread(self._read_stats, user_id)

    async def add_favorite(self, user_id: str, clip_id: str) -> None:
        await asyncio.to_thread(self._update_favorites, user_id, clip_id, True)

    async def remove_favorite(self, user_id: str, clip_id: str) -> None:
        await asyncio.to_thread(self._update_favorites, user_id, clip_id, False)

    async def is_favorite(self, user_id: str, clip_id: str) -> bool:
        favorites = await asyncio.to_thread(self._read_favorites, user_id)
        return clip_id in favorites

    async def list_favorites(self, user_id: str) -> list[str]:
        return await asyncio.to_thread(self._read_favorites, user_id)

    # --- Sync helpers (run off the event loop) ---

    def _clips_dir(self) -> Path:
        return self._root / 'clips'

    def _recordings_dir(self) -> Path:
        return self._root / 'recordings'

    def _recording_file(self, storage_path: str) -> Path:
        user_part, _, file_part = storage_path.partition('/')
        return self._recordings_dir() / _safe_name(user_part) / _safe_name(file_part)

    def _meta_file(self, user_id: str, clip_id: str) -> Path:
        return self._recordings_dir() / _safe_name(user_id) / f'{_safe_name(clip_id)}.json'

    def _read_clip(self, clip_id: str) -> Clip:
        path = self._clips_dir() / f'{_safe_name(clip_id)}.json'
        if not path.exists():
            raise ClipNotFoundError(f'Clip not found: {clip_id}')
        try:
            return Clip.model_validate_json(path.read_text(encoding='utf-8'))
        except (OSError, ValidationError) as e:
            raise StoreError(f'Cannot read clip {clip_id}: {e}') from e

    def _list_clips(self) -> list[Clip]:
        clips_dir = self._clips_dir()
        if not clips_dir.exists():
            return []
        clips = []
        for path in sorted(clips_dir.glob('*.json')):
            try:
                clips.append(Clip.model_validate_json(path.read_text(encoding='utf-8')))
            except (OSError, ValidationError) as e:
                log.warning('Skipping unreadable clip %s: %s', path.name, e)
        return clips

    def _read_recording(self, user_id: str, clip_id: str) -> Recording | None:
        meta = self._meta_file(user_id, clip_id)
        if not meta.exists():
            return None
        try:
            return Recording.model_validate_json(meta.read_text(encoding='utf-8'))
        except (OSError, ValidationError) as e:
            raise StoreError(f'Cannot read recording metadata {meta.name}: {e}') from e

    def _write_recording(self, user_id: str, clip_id: str, blob: AudioBlob) -> Recording:
        storage_path = recording_storage_path(user_id, clip_id)
        recording = Recording(
            user_id=user_id,
            clip_id=clip_id,
            storage_path=storage_path,
            duration_seconds=blob.duration_seconds,
        )
        audio = self._recording_file(storage_path)
        try:
            audio.parent.mkdir(parents=True, exist_ok=True)
            audio.write_bytes(blob.data)
            self._meta_file(user_id, clip_id).write_text(recording.model_dump_json(indent=2), encoding='utf-8')
        except OSError as e:
            raise StoreError(f'Cannot write recording {storage_path}: {e}') from e
        log.debug('Wrote %d bytes to %s', len(blob.data), storage_path)
        return recording

    def _remove_recording(self, user_id: str, clip_id: str) -> None:
        audio = self._recording_file(recording_storage_path(user_id, clip_id))
        try:
            audio.unlink(missing_ok=True)
            self._meta_file(user_id, clip_id).unlink(missing_ok=True)
        except OSError as e:
            raise StoreError(f'Cannot delete recording for {clip_id}: {e}') from e
        log.info('Deleted recording %s/%s', user_id, clip_id)

    def _read_stats(self, user_id: str) -> UserStats | None:
        path = self._root / 'stats' / f'{_safe_name(user_id)}.json'
        if not path.exists():
            return None
        try:
            return UserStats.model_validate_json(path.read_text(encoding='utf-8'))
        except (OSError, ValidationError) as e:
            raise StoreError(f'Cannot read stats for {user_id}: {e}') from e

    def _advance_streak(self, user_id: str, today: date) -> UserStats:
        stats = advance_streak(user_id, self._read_stats(user_id), today)
        self._write_text(self._root / 'stats' / f'{_safe_name(user_id)}.json', stats.model_dump_json(indent=2))
        log.info('Streak for %s: %d (longest %d)', user_id, stats.current_streak, stats.longest_streak)
        return stats

    def _read_favorites(self, user_id: str) -> list[str]:
        path = self._root / 'favorites' / f'{_safe_name(user_id)}.json'
        if not path.exists():
            return []
        try:
            return list(json.loads(path.read_text(encoding='utf-8')))
        except (OSError, ValueError) as e:
            raise StoreError(f'Cannot read favorites for {user_id}: {e}') from e

    def _update_favorites(self, user_id: str, clip_id: str, add: bool) -> None:
        favorites = self._read_favorites(user_id)
        if add and clip_id not in favorites:
            favorites.append(clip_id)
        elif not add and clip_id in favorites:
            favorites.remove(clip_id)
        path = self._root / 'favorites' / f'{_safe_name(user_id)}.json'
        self._write_text(path, json.dumps(favorites, indent=2))

    def _write_text(self, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise StoreError(f'Cannot write {path.name}: {e}') from e

    def _append_line(self, path: Path, line: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open('a', encoding='utf-8') as f:
                f.write(line + '\n')
        except OSError as e:
            raise StoreError(f'Cannot append to {path.name}: {e}') from e

    def _sign(self, storage_path: str, expires: str) -> str:
        message = f'{quote(storage_path)}:{expires}'.encode('utf-8')
        return hmac.new(self._signing_key, message, hashlib.sha256).hexdigest()

    def _load_or_create_key(self) -> str:
        key_path = self._root / '.signing_key'
        if key_path.exists():
            return key_path.read_text(encoding='utf-8').strip()
        key = secrets.token_hex(32)
        key_path.write_text(key, encoding='utf-8')
        return key
