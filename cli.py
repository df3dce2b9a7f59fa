#!/usr/bin/env python3
"""
FlareSight Command Line Interface

Inspect the preset catalog, compose filter strings, try the scene
recommender, grade stills offline, and watch a live camera for scene
suggestions.
"""

import asyncio
import sys
import click
import logging
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from flaresight.config import load_config, GatewayConfig
from flaresight.detection import (
    Confidence, SceneObservation, VideoCaptureSource,
    LocalSceneTransport, GatewaySceneTransport
)
from flaresight.errors import FlareSightError
from flaresight.grading import GradingSession, list_presets
from flaresight.pipeline import AdaptiveFilterPipeline
from flaresight.rendering import to_css_filter, apply_chain
from flaresight.suggestions import SceneRecommender, PresentationState
from flaresight.utils.logging import setup_console_logging

logger = logging.getLogger(__name__)


def _build_session(preset: Optional[str], settings: Tuple[str, ...]) -> GradingSession:
    session = GradingSession()
    for item in settings:
        name, sep, value = item.partition('=')
        if not sep:
            raise click.BadParameter(f"Expected name=value, got {item!r}", param_hint='--set')
        try:
            session.adjust(name.strip().replace('-', '_'), float(value))
        except ValueError:
            raise click.BadParameter(f"Not a number: {value!r}", param_hint='--set')
    if preset:
        session.set_active_preset(preset)
    return session


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, config: Optional[str] = None, verbose: bool = False, quiet: bool = False):
    """
    FlareSight - scene-aware filter suggestions for live camera previews
    """
    if ctx.obj is None:
        ctx.obj = {}

    cfg = load_config(config) if config else load_config()

    level = 'DEBUG' if verbose else 'ERROR' if quiet else cfg['logging']['level']
    setup_console_logging(level=level, fmt=cfg['logging']['format'])

    ctx.obj['config'] = cfg
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


@main.command()
def presets():
    """List the built-in filter presets."""
    for preset in list_presets():
        knobs = ", ".join(f"{name}={value:g}" for name, value in preset.overlay.items())
        click.echo(f"{preset.preset_id:<24} {preset.display_name:<16} {knobs}")


@main.command()
@click.option('--preset', '-p', help='Preset id to overlay')
@click.option('--set', 'settings', multiple=True, metavar='NAME=VALUE',
              help='Set a grading parameter (repeatable)')
def compose(preset: Optional[str], settings: Tuple[str, ...]):
    """Print the filter chain and CSS filter for a grading."""
    try:
        session = _build_session(preset, settings)
    except FlareSightError as e:
        raise click.ClickException(str(e))

    chain = session.filter_chain()
    if chain.is_empty:
        click.echo("(no-op filter chain)")
        return
    for op in chain:
        click.echo(f"  {op.kind:<12} {op.magnitude:g}")
    click.echo(to_css_filter(chain))


@main.command()
@click.argument('label')
@click.option('--confidence', default='high',
              type=click.Choice([c.value for c in Confidence]),
              help='Classifier confidence for the observation')
@click.pass_context
def recommend(ctx, label: str, confidence: str):
    """Show the suggestion for a scene LABEL."""
    min_confidence = ctx.obj['config']['suggestions']['min_confidence']
    recommender = SceneRecommender(min_confidence=Confidence.from_value(min_confidence))
    suggestion = recommender.recommend(
        SceneObservation(label=label, confidence=Confidence(confidence))
    )
    if suggestion is None:
        click.echo(f"No suggestion for {label!r}")
        return
    click.echo(f"{suggestion.message} -> {suggestion.preset_id}")


@main.command()
@click.argument('image', type=click.Path(exists=True, dir_okay=False))
@click.argument('output', type=click.Path(dir_okay=False))
@click.option('--preset', '-p', help='Preset id to overlay')
@click.option('--set', 'settings', multiple=True, metavar='NAME=VALUE',
              help='Set a grading parameter (repeatable)')
def grade(image: str, output: str, preset: Optional[str], settings: Tuple[str, ...]):
    """Grade a still IMAGE offline and write OUTPUT."""
    try:
        session = _build_session(preset, settings)
    except FlareSightError as e:
        raise click.ClickException(str(e))

    with Image.open(image) as img:
        pixels = np.asarray(img.convert('RGB'))
    graded = apply_chain(pixels, session.filter_chain())
    Image.fromarray(graded).save(output)
    click.echo(f"Wrote {output} ({session.css_filter() or 'no filter'})")


async def _watch(pipeline: AdaptiveFilterPipeline, duration: float, auto_apply: bool):
    def on_state(state: PresentationState, suggestion):
        if state is PresentationState.VISIBLE:
            click.echo(f"[{suggestion.scene_label}] {suggestion.message}")
            if auto_apply:
                pipeline.apply_suggestion()
        elif state is PresentationState.APPLIED:
            click.echo(f"Applied {suggestion.preset_id}: {pipeline.css_filter()}")

    pipeline.presenter.subscribe(on_state)
    async with pipeline:
        await asyncio.sleep(duration)


@main.command()
@click.option('--source', '-s', default='0',
              help='Camera index or video file/stream URL')
@click.option('--gateway', is_flag=True,
              help='Classify with the hosted vision gateway instead of local heuristics')
@click.option('--duration', '-d', type=float, default=60.0,
              help='Seconds to watch')
@click.option('--auto-apply', is_flag=True, help='Apply every suggestion as it appears')
@click.pass_context
def watch(ctx, source: str, gateway: bool, duration: float, auto_apply: bool):
    """Watch a live SOURCE and print scene suggestions."""
    config = ctx.obj['config']
    src = int(source) if source.isdigit() else source

    try:
        if gateway:
            transport = GatewaySceneTransport(GatewayConfig.from_config(config))
        else:
            transport = LocalSceneTransport()
        capture = VideoCaptureSource(src).start()
    except FlareSightError as e:
        raise click.ClickException(str(e))

    pipeline = AdaptiveFilterPipeline(capture, transport, config=config)
    try:
        asyncio.run(_watch(pipeline, duration, auto_apply))
    except KeyboardInterrupt:
        click.echo("Interrupted")
    finally:
        capture.stop()

    if not ctx.obj['quiet']:
        pipeline.client.stats.print_summary()


if __name__ == '__main__':
    sys.exit(main())
