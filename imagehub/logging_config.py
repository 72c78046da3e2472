import json
import logging
import logging.config
import sys

from imagehub.config import Settings


class JsonFormatter(logging.Formatter):
	"""
	Formatter for logging in JSON format.
	"""

	def format(self, record):
		log_record = {
			"timestamp": self.formatTime(record, self.datefmt),
			"level": record.levelname,
			"name": record.name,
			"message": record.getMessage(),
		}
		if record.exc_info:
			log_record["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(log_record)


def _build_config(level: str, production: bool) -> dict:
	handler = "console_json" if production else "console"
	quiet = {"level": "WARNING", "handlers": [handler], "propagate": False}
	return {
		"version": 1,
		"disable_existing_loggers": False,
		"formatters": {
			"default": {
				"format": "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
				"datefmt": "%Y-%m-%d %H:%M:%S",
			},
			"json": {
				"()": JsonFormatter,
				"datefmt": "%Y-%m-%dT%H:%M:%S%z",
			},
		},
		"handlers": {
			"console": {
				"class": "logging.StreamHandler",
				"stream": sys.stdout,
				"formatter": "default",
			},
			"console_json": {
				"class": "logging.StreamHandler",
				"stream": sys.stdout,
				"formatter": "json",
			},
		},
		"root": {"level": level, "handlers": [handler]},
		"loggers": {
			"imagehub": {"level": level, "handlers": [handler], "propagate": False},
			"uvicorn": {"level": "INFO", "handlers": [handler], "propagate": False},
			"uvicorn.access": {"level": "INFO", "handlers": [handler], "propagate": False},
			"uvicorn.error": {"level": "ERROR" if production else "INFO", "handlers": [handler], "propagate": False},
			# PIL logs every plugin it probes at DEBUG
			"PIL": quiet,
		},
	}


def setup_logging(settings: Settings) -> None:
	"""
	Set up logging configuration based on the environment.
	"""
	env = settings.ENVIRONMENT.lower()
	logging.config.dictConfig(_build_config(settings.LOG_LEVEL.upper(), env == "production"))
	logging.getLogger("imagehub").info(
		f"Logging setup complete for {env} environment with level {settings.LOG_LEVEL}"
	)
