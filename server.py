# server.py
# Upload a MIDI file, get back a two-hand piano arrangement.
import logging
import os
import threading
import time
import uuid
from typing import Dict, Optional
from flask import Flask, request, jsonify, send_from_directory
from config import ArrangementConfig, ServerConfig
from midi.parser import MidiInputError, MIDI_EXTENSIONS
from notes.pipeline import optimize_file

def _form_int(name: str, default: int) -> int:
    raw = request.form.get(name, "")
    if raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None

def _form_flag(name: str) -> bool:
    return request.form.get(name) != 'false'

class StagingSweeper:
    """Removes staged files once their deadline passes, from one daemon thread."""
    def __init__(self, interval: float):
        self.interval = interval
        self._deadlines: Dict[str, float] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def schedule(self, path: str, delay: float):
        # rescheduling an already staged path replaces its deadline
        with self._lock:
            self._deadlines[path] = time.monotonic() + delay

    def sweep(self, now: Optional[float] = None) -> int:
        now = time.monotonic() if now is None else now
        with self._lock:
            due = [p for p, t in self._deadlines.items() if t <= now]
            for p in due:
                del self._deadlines[p]
        for p in due:
            try:
                os.remove(p)
                logging.debug("Removed staged file %s", p)
            except FileNotFoundError:
                pass
            except OSError:
                logging.exception("Error deleting staged file %s", p)
        return len(due)

    def _run(self):
        while not self._stop.wait(self.interval):
            self.sweep()

    def start(self):
        if self._thread is None:
            self._thread = threading.Thread(target=self._run, name="staging-sweeper", daemon=True)
            self._thread.start()

    def stop(self):
        self._stop.set()

def create_app(cfg: Optional[ServerConfig] = None) -> Flask:
    cfg = cfg or ServerConfig()
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = int(cfg.max_upload_mb * 1024 * 1024)
    staging = os.path.abspath(cfg.staging_dir)
    os.makedirs(staging, exist_ok=True)
    sweeper = StagingSweeper(cfg.sweep_interval_s)
    sweeper.start()
    app.extensions['staging_sweeper'] = sweeper

    @app.errorhandler(413)
    def too_large(e):
        return jsonify({"error": f"File too large (limit {cfg.max_upload_mb:g} MB)"}), 413

    @app.route('/optimize', methods=['POST'])
    def optimize():
        upload = request.files.get('midiFile')
        if upload is None or not upload.filename:
            return jsonify({"error": "No MIDI file uploaded"}), 400
        if not upload.filename.lower().endswith(MIDI_EXTENSIONS):
            return jsonify({"error": "Invalid file type. Please upload a MIDI file (.mid or .midi)"}), 400
        try:
            arrange_cfg = ArrangementConfig(
                split_point=_form_int('splitPoint', cfg.default_split_point),
                max_right_hand_notes=_form_int('maxRightHandNotes', cfg.default_max_right),
                max_left_hand_notes=_form_int('maxLeftHandNotes', cfg.default_max_left),
                dynamic_split_point=_form_flag('dynamicSplitPoint'),
                preserve_melody=_form_flag('preserveMelody'),
                preserve_bass=_form_flag('preserveBass'),
            )
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        # a fresh, exclusively owned slot per request
        token = uuid.uuid4().hex
        input_path = os.path.join(staging, f"input_{token}.mid")
        output_name = f"piano_{token}.mid"
        output_path = os.path.join(staging, output_name)

        try:
            upload.save(input_path)
            sweeper.schedule(input_path, cfg.input_ttl_s)
            # never-downloaded outputs expire with their input
            sweeper.schedule(output_path, cfg.input_ttl_s)
            stats = optimize_file(input_path, output_path, arrange_cfg)
        except MidiInputError as e:
            logging.warning("Rejected upload %s: %s", upload.filename, e)
            return jsonify({"error": str(e)}), 400
        except Exception as e:
            logging.exception("Error processing MIDI file")
            return jsonify({"error": f"Error processing MIDI file: {e}"}), 500

        return jsonify({
            "success": True,
            "message": "MIDI file optimized successfully",
            "downloadLink": f"/download/{output_name}",
            "stats": stats.to_dict(),
        })

    @app.route('/download/<filename>')
    def download(filename):
        path = os.path.join(staging, filename)
        if os.path.dirname(os.path.abspath(path)) != staging or not os.path.isfile(path):
            return "File not found", 404
        resp = send_from_directory(staging, filename, mimetype='audio/midi',
                                   as_attachment=True, download_name='piano_optimized.mid')
        resp.call_on_close(lambda: sweeper.schedule(path, cfg.download_ttl_s))
        return resp

    return app

def serve(cfg: ServerConfig):
    app = create_app(cfg)
    logging.info("Piano arranger server running on http://%s:%d", cfg.host, cfg.port)
    app.run(host=cfg.host, port=cfg.port, debug=False)
