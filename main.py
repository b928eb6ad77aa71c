# main.py
import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from config import AppConfig, ArrangementConfig, RenderConfig, AudioConfig, ServerConfig
from utils.crashlog import setup_crashlog, log_exception, log_dir

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def _init_logging(verbose: bool = False):
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT, encoding="utf-8")
    root.handlers[0].setLevel(logging.DEBUG if verbose else logging.INFO)
    try:
        fh = RotatingFileHandler(os.path.join(log_dir(), "app.log"),
                                 maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8")
    except OSError:
        logging.warning("File logging disabled: logs/ is not writable")
        return
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)

def _add_arrangement_args(ap: argparse.ArgumentParser):
    ap.add_argument('--split-point', type=int, default=60, help='hand split pitch (default: 60/C4)')
    ap.add_argument('--max-right', type=int, default=4, help='max simultaneous right-hand notes (default: 4)')
    ap.add_argument('--max-left', type=int, default=3, help='max simultaneous left-hand notes (default: 3)')
    ap.add_argument('--static-split', action='store_true', help='use a static split point')
    ap.add_argument('--no-preserve-melody', action='store_true', help="don't force melody tracks into the right hand")
    ap.add_argument('--no-preserve-bass', action='store_true', help="don't prioritize bass in the left hand")
    ap.add_argument('--strict', action='store_true', help='drop the lowest notes so neither hand ever exceeds its ceiling')

def _arrangement_config(args) -> ArrangementConfig:
    return ArrangementConfig(
        split_point=args.split_point,
        max_right_hand_notes=args.max_right,
        max_left_hand_notes=args.max_left,
        dynamic_split_point=not args.static_split,
        preserve_melody=not args.no_preserve_melody,
        preserve_bass=not args.no_preserve_bass,
        strict_ceiling=args.strict,
    )

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog='piano-arranger',
                                 description='Re-arrange a multi-track MIDI file for two hands on piano.')
    ap.add_argument('-v', '--verbose', action='store_true', help='debug logging on the console')
    sub = ap.add_subparsers(dest='command', required=True)

    p = sub.add_parser('arrange', help='arrange INPUT into OUTPUT')
    p.add_argument('input')
    p.add_argument('output')
    _add_arrangement_args(p)

    p = sub.add_parser('serve', help='run the upload/download web service')
    p.add_argument('--host', default=ServerConfig.host)
    p.add_argument('--port', type=int, default=int(os.environ.get('PORT', ServerConfig.port)))
    p.add_argument('--staging-dir', default=ServerConfig.staging_dir)

    p = sub.add_parser('preview', help='arrange INPUT and play it back in a window')
    p.add_argument('input')
    _add_arrangement_args(p)
    p.add_argument('--pps', type=float, default=RenderConfig.pixels_per_second, help='fall speed (px/s)')
    p.add_argument('--key-range', default='88', choices=['88', '76', '61'])
    p.add_argument('--mute', action='store_true', help='no MIDI output')
    return ap

def cmd_arrange(args) -> int:
    from notes.pipeline import optimize_file
    from midi.parser import MidiInputError

    cfg = _arrangement_config(args)
    if not os.path.exists(args.input):
        print(f'Error: Input file "{args.input}" not found', file=sys.stderr)
        return 1
    out_dir = os.path.dirname(os.path.abspath(args.output))
    os.makedirs(out_dir, exist_ok=True)

    print('Piano Arranger')
    print('-------------------')
    print(f'Input: {args.input}')
    print(f'Output: {args.output}')
    print(f"- Split point: {cfg.split_point} ({'dynamic' if cfg.dynamic_split_point else 'static'})")
    print(f'- Max notes: {cfg.max_right_hand_notes} (right hand), {cfg.max_left_hand_notes} (left hand)')
    print(f'- Preserve melody: {cfg.preserve_melody}')
    print(f'- Preserve bass: {cfg.preserve_bass}')
    print('-------------------')
    try:
        stats = optimize_file(args.input, args.output, cfg)
    except MidiInputError as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1
    print('Optimization complete!')
    print(f'Original tracks: {stats.original_tracks}')
    print(f'Right hand notes: {stats.right_hand_notes} (peak polyphony {stats.right_hand_polyphony})')
    print(f'Left hand notes: {stats.left_hand_notes} (peak polyphony {stats.left_hand_polyphony})')
    print(f'Duration: {stats.duration:.2f} seconds')
    print(f'Output saved to: {args.output}')
    return 0

def cmd_serve(args) -> int:
    from server import serve
    serve(ServerConfig(host=args.host, port=args.port, staging_dir=args.staging_dir))
    return 0

def cmd_preview(args) -> int:
    from midi.parser import parse_performance, MidiInputError
    from notes.pipeline import arrange
    from app import PreviewApp

    cfg = AppConfig(
        arrange=_arrangement_config(args),
        render=RenderConfig(pixels_per_second=args.pps, key_range=args.key_range),
        audio=AudioConfig(enabled=not args.mute),
    )
    try:
        perf = parse_performance(args.input)
    except MidiInputError as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1
    PreviewApp(cfg, arrange(perf.tracks, cfg.arrange), title=os.path.basename(args.input)).run()
    return 0

COMMANDS = {'arrange': cmd_arrange, 'serve': cmd_serve, 'preview': cmd_preview}

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_crashlog()
    _init_logging(args.verbose)
    try:
        return COMMANDS[args.command](args)
    except ValueError as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1
    except Exception as e:
        path = log_exception("Top-level exception", e)
        logging.error("Unhandled exception: %s", e, exc_info=True)
        print(f"Error: {e} (details in {path})", file=sys.stderr)
        return 1

if __name__ == '__main__':
    sys.exit(main())
