"""Actionable error catalog for supadeploy."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "missing_tool": {
        "what": "Required command '{tool}' not found.",
        "next": "Install '{tool}' and run the script again. {hint}",
    },
    "tool_too_old": {
        "what": "'{tool}' {found} is older than the required {minimum}.",
        "next": "Upgrade '{tool}' and run the script again. {hint}",
    },
    "clone_failed": {
        "what": "Failed to clone repository {url}.",
        "next": "Check network access and that `git` can reach the repository, then retry.",
    },
    "directory_missing": {
        "what": "Failed to change directory to '{path}'.",
        "next": "Make sure '{repo_dir}' is a checkout of {url}, or remove it so it is cloned again.",
    },
    "tool_step_failed": {
        "what": "{label} failed.",
        "next": (
            "Review the {tool} output above and run again. "
            "Resources created by earlier steps are left in place."
        ),
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs).strip()
    return f"{what} Suggested action: {next_step}"
