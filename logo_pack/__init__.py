"""Logo export pack generator: SVG color/size variants rendered to PNG, JPG, WEBP, PDF, EPS and AI."""

__version__ = "0.3.0"
