import os
from pathlib import Path
from typing import Optional

import yaml

# GitHub label IDs of golang/go, with the lower-cased names as a fallback key
# for snapshots that do not carry ids.
#
# Extract using:
#   curl -sn https://api.github.com/repos/golang/go/labels/$LABELNAME | jq .id
DEFAULT_LABELS: dict = {
    "waiting_for_info": [357033853, "waitingforinfo"],
    "proposal_hold": [477156222, "proposal-hold"],
    "needs_decision": [373401956, "needsdecision"],
    "frozen_due_to_age": [398069301, "frozenduetoage"],
    "release_blocker": ["release-blocker"],
    "early_in_cycle": ["early-in-cycle"],
    "feature_request": ["featurerequest", "feature request"],
    "testing": ["testing"],
    "documentation": ["documentation"],
}

DEFAULT_CONFIG: dict = {
    "corpus": "json",  # "json" | "sqlite"
    "corpus_path": "corpus.json",
    "project": "go.googlesource.com/go",
    "repo": "golang/go",
    "review_label": "Code-Review",
    "reject_vote": -2,
    "aux_policy": "milestone",  # "milestone" | "urgency"
    "skip_frozen": True,  # drop locked issues carrying the frozen-due-to-age label
    "labels": DEFAULT_LABELS,
}


def load_config(config_path: str = ".issuestate.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .issuestate.yml in the current directory
      3. CLI argument overrides

    The ``labels`` table merges per role, so a config file can redefine one
    role without restating the others.
    """
    config = {**DEFAULT_CONFIG, "labels": {role: list(keys) for role, keys in DEFAULT_LABELS.items()}}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        file_labels = file_config.pop("labels", None) or {}
        config.update(file_config)
        for role, keys in file_labels.items():
            config["labels"][role] = list(keys or [])

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    corpus_path = os.environ.get("ISSUESTATE_CORPUS_PATH")
    if corpus_path:
        config["corpus_path"] = corpus_path

    return config
