# exam_evaluation/config.py

"""
Configuration module for the evaluation engine.
"""

from dataclasses import dataclass
import logging


@dataclass
class EvaluationConfig:
    """Main configuration for the evaluation engine"""

    # Compute every metric when a solution is constructed instead of on first query
    eager_evaluation: bool = False

    # Logging
    enable_logging: bool = True
    log_level: str = "WARNING"
    log_metric_timings: bool = False


# Global configuration instance
config = EvaluationConfig()


def get_logger(name: str) -> logging.Logger:
    """Get configured logger for the evaluation engine"""
    logger = logging.getLogger(f"exam_evaluation.{name}")
    if config.enable_logging and not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(getattr(logging, config.log_level))
    return logger
