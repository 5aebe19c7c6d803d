"""CLI entry point for shadow-drill."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from shadow_drill import __version__


@click.group()
@click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True),
    help='Path to YAML config file.',
)
@click.option(
    '-d',
    '--data-dir',
    default=None,
    type=click.Path(file_okay=False),
    help='Directory holding clips, recordings and stats.',
)
@click.option(
    '-u',
    '--user',
    'user_id',
    default=None,
    help='Practice as this user (recordings, streaks and favorites are per user).',
)
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, config_path, data_dir, user_id):
    """shadow-drill -- shadowing practice on short video clips."""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['data_dir'] = data_dir
    ctx.obj['user_id'] = user_id


def _load_config(ctx: click.Context):
    import yaml  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
    from pydantic import ValidationError  # noqa: PLC0415 -- deferred: not needed for --help

    from shadow_drill.l3_interface_adapters.gateways.yaml_config_loader import (  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
        YamlConfigLoader,
    )
    from shadow_drill.l4_frameworks_and_drivers.config import (  # noqa: PLC0415 -- deferred: not needed for --help
        APP_CONFIG_DEFAULTS,
    )

    overrides: dict = {}
    if ctx.obj.get('data_dir'):
        overrides['storage'] = {'directory': ctx.obj['data_dir']}
    if ctx.obj.get('user_id'):
        overrides['user'] = {'id': ctx.obj['user_id']}

    try:
        return YamlConfigLoader(APP_CONFIG_DEFAULTS).load(ctx.obj.get('config_path'), overrides=overrides)
    except FileNotFoundError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)
    except ValidationError as e:
        click.echo(f'Error: invalid config: {e}', err=True)
        sys.exit(1)
    except (ValueError, yaml.YAMLError) as e:
        click.echo(f'Error: cannot read config: {e}', err=True)
        sys.exit(1)


def _open_store(config):
    from shadow_drill.l3_interface_adapters.gateways.file_store import (  # noqa: PLC0415 -- deferred: not needed for --help
        FilePracticeStore,
    )

    return FilePracticeStore(Path(config.storage.directory), signing_key=config.storage.signing_key)


@cli.command()
@click.argument('clip_id')
@click.pass_context
def practice(ctx, clip_id):
    """Open CLIP_ID in the practice screen."""
    from shadow_drill.l1_entities.errors import StoreError  # noqa: PLC0415 -- deferred: not needed for --help

    config = _load_config(ctx)
    store = _open_store(config)
    try:
        asyncio.run(store.get_clip(clip_id))
    except StoreError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)

    _preflight_microphone()

    from shadow_drill.l4_frameworks_and_drivers.apps.practice import (  # noqa: PLC0415 -- deferred: Textual TUI not loaded for --help
        PracticeApp,
    )
    from shadow_drill.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: Textual TUI not loaded for --help
        DependencyContainer,
    )

    container = DependencyContainer(config)
    app = PracticeApp(
        config=config,
        clip_id=clip_id,
        log_dir=Path(config.storage.directory),
        controller=container.controller,
        audio_output=container.audio_output,
        url_resolver=container.store.resolve_playback_url,
    )
    app.run()


@cli.command()
@click.argument('url')
@click.option(
    '-s',
    '--subtitles',
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help='json3 subtitle file for the spoken language.',
)
@click.option(
    '-t',
    '--translation',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='json3 subtitle file with the translation.',
)
@click.option('--start', 'start_time', required=True, type=float, help='Clip start in seconds.')
@click.option('--end', 'end_time', required=True, type=float, help='Clip end in seconds.')
@click.option('--title', default='', help='Clip title.')
@click.option('--category', default='general', show_default=True, help='Clip category.')
@click.option('--description', default=None, help='Free-form notes shown with the clip.')
@click.option('--id', 'clip_id', default=None, help='Clip id (default: <video>-<start>-<end>).')
@click.pass_context
def add(ctx, url, subtitles, translation, start_time, end_time, title, category, description, clip_id):
    """Cut a clip out of URL using downloaded json3 subtitles."""
    from pydantic import ValidationError  # noqa: PLC0415 -- deferred: not needed for --help

    from shadow_drill.l1_entities.errors import StoreError  # noqa: PLC0415 -- deferred: not needed for --help
    from shadow_drill.l2_use_cases.clip_authoring import (  # noqa: PLC0415 -- deferred: not needed for --help
        build_clip,
        extract_video_id,
        wpm_label,
    )
    from shadow_drill.l3_interface_adapters.gateways.json3_loader import (  # noqa: PLC0415 -- deferred: not needed for --help
        load_json3,
    )

    video_id = extract_video_id(url)
    if video_id is None:
        click.echo(f'Error: not a YouTube URL: {url}', err=True)
        sys.exit(1)

    try:
        transcript = load_json3(Path(subtitles))
        secondary = load_json3(Path(translation)) if translation else None
    except (OSError, ValueError) as e:
        click.echo(f'Error: cannot read subtitles: {e}', err=True)
        sys.exit(1)

    clip_id = clip_id or f'{video_id}-{int(start_time)}-{int(end_time)}'
    try:
        clip = build_clip(
            clip_id,
            video_id,
            start_time,
            end_time,
            transcript,
            transcript_secondary=secondary,
            title=title,
            description=description,
            category=category,
        )
    except ValidationError as e:
        click.echo(f'Error: invalid clip: {e}', err=True)
        sys.exit(1)

    if not clip.transcript:
        click.echo('Warning: no subtitle lines fall inside the clip range.', err=True)

    config = _load_config(ctx)
    store = _open_store(config)
    try:
        asyncio.run(store.save_clip(clip))
    except StoreError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)

    click.echo(f'Saved clip {clip.id} ({len(clip.transcript)} lines, {clip.wpm} wpm, {wpm_label(clip.wpm or 0)})')


@cli.command('list')
@click.pass_context
def list_clips(ctx):
    """List saved clips; favorites are starred."""
    from shadow_drill.l1_entities.transcript import format_clock  # noqa: PLC0415 -- deferred: not needed for --help
    from shadow_drill.l2_use_cases.clip_authoring import wpm_label  # noqa: PLC0415 -- deferred: not needed for --help

    config = _load_config(ctx)
    store = _open_store(config)
    user_id = config.user.id

    async def _gather():
        return (
            await store.list_clips(),
            await store.list_favorites(user_id),
            await store.get_stats(user_id),
        )

    clips, favorites, stats = asyncio.run(_gather())
    if not clips:
        click.echo('No clips yet. Add one with: shadow-drill add URL --subtitles FILE --start S --end E')
        return

    for clip in clips:
        star = '★' if clip.id in favorites else ' '
        speed = f'{clip.wpm} wpm ({wpm_label(clip.wpm)})' if clip.wpm is not None else '-'
        click.echo(f'{star} {clip.id}  {format_clock(clip.duration)}  {speed}  [{clip.category}]  {clip.title}')

    if stats is not None:
        click.echo(
            f'\nStreak: {stats.current_streak} day(s), longest {stats.longest_streak}, '
            f'{stats.total_recordings} recording(s)'
        )


@cli.command()
@click.argument('clip_id')
@click.pass_context
def favorite(ctx, clip_id):
    """Toggle CLIP_ID in your favorites."""
    from shadow_drill.l1_entities.errors import StoreError  # noqa: PLC0415 -- deferred: not needed for --help

    config = _load_config(ctx)
    store = _open_store(config)
    user_id = config.user.id

    async def _toggle() -> bool:
        await store.get_clip(clip_id)
        if await store.is_favorite(user_id, clip_id):
            await store.remove_favorite(user_id, clip_id)
            return False
        await store.add_favorite(user_id, clip_id)
        return True

    try:
        added = asyncio.run(_toggle())
    except StoreError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)
    click.echo(f'★ {clip_id} added to favorites' if added else f'{clip_id} removed from favorites')


@cli.command('delete-recording')
@click.argument('clip_id')
@click.pass_context
def delete_recording(ctx, clip_id):
    """Delete your saved recording for CLIP_ID."""
    from shadow_drill.l1_entities.errors import StoreError  # noqa: PLC0415 -- deferred: not needed for --help

    config = _load_config(ctx)
    store = _open_store(config)
    user_id = config.user.id

    async def _delete() -> bool:
        if await store.get_recording(user_id, clip_id) is None:
            return False
        await store.delete_recording(user_id, clip_id)
        return True

    try:
        deleted = asyncio.run(_delete())
    except StoreError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)
    click.echo(f'Deleted recording for {clip_id}' if deleted else f'No recording for {clip_id}')


def _preflight_microphone() -> None:
    try:
        import sounddevice as sd  # noqa: PLC0415 -- deferred: not loaded on --help

        devices = sd.query_devices()
        input_devices = [d for d in devices if d['max_input_channels'] > 0]
        if not input_devices:
            click.echo('Warning: No input audio devices found. Recording mode will not work.', err=True)
    except Exception as e:
        click.echo(f'Warning: Cannot query audio devices ({e}).', err=True)
