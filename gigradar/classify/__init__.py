from .claude import ClaudeClassifier, extract_json, parse_jobs
from .prompts import build_system_prompt

__all__ = [
    "ClaudeClassifier",
    "extract_json",
    "parse_jobs",
    "build_system_prompt",
]
