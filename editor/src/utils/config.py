"""User configuration for the Watermark Editor"""

import json
import logging
import os
from dataclasses import dataclass, fields
from typing import Optional

from constants import INPAINT_ITERATIONS, DEFAULT_BRUSH_RADIUS, DEFAULT_JPEG_QUALITY

CONFIG_DIR = os.path.join(os.path.expanduser('~'), '.watermark_editor')
CONFIG_FILE = os.path.join(CONFIG_DIR, 'config.json')

_log = logging.getLogger('EditorConfig')


@dataclass
class EditorConfig:
	"""Settings persisted between sessions

	export_format None keeps each input's own format on export.
	"""
	inpaint_iterations: int = INPAINT_ITERATIONS
	brush_radius: float = DEFAULT_BRUSH_RADIUS
	export_format: Optional[str] = None
	jpeg_quality: int = DEFAULT_JPEG_QUALITY

	@classmethod
	def from_dict(cls, data):
		"""Build from a parsed config dict, ignoring unknown keys"""
		known = {f.name for f in fields(cls)}
		values = {k: v for k, v in data.items() if k in known}
		config = cls(**values)
		config.inpaint_iterations = max(0, int(config.inpaint_iterations))
		config.brush_radius = max(1.0, float(config.brush_radius))
		config.jpeg_quality = min(100, max(1, int(config.jpeg_quality)))
		if config.export_format:
			config.export_format = str(config.export_format).upper()
		else:
			config.export_format = None
		return config

	def to_dict(self):
		return {
			'inpaint_iterations': self.inpaint_iterations,
			'brush_radius': self.brush_radius,
			'export_format': self.export_format,
			'jpeg_quality': self.jpeg_quality,
		}


def load_config(path=None):
	"""Load settings from disk, defaults if the file is missing

	Raises:
		ValueError: If the file exists but is not a JSON object
	"""
	path = path or CONFIG_FILE
	if not os.path.exists(path):
		return EditorConfig()
	with open(path, 'r', encoding='utf-8') as f:
		data = json.load(f)
	if not isinstance(data, dict):
		raise ValueError(f"Config file {path} must contain a JSON object")
	_log.debug(f"Loaded config from {path}")
	return EditorConfig.from_dict(data)


def save_config(config, path=None):
	"""Write settings to disk, creating the config directory if needed"""
	path = path or CONFIG_FILE
	directory = os.path.dirname(path)
	if directory:
		os.makedirs(directory, exist_ok=True)
	with open(path, 'w', encoding='utf-8') as f:
		json.dump(config.to_dict(), f, indent=2)
	_log.debug(f"Saved config to {path}")
