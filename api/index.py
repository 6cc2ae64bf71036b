"""Minimal Vercel serverless entrypoint for this repository.

The Fotix kit is a Streamlit application, which is not a native Vercel runtime
target. When deployed to Vercel, route all traffic here so users get a clear
response instead of a generic NOT_FOUND page.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fotix.config import Settings


def handler(request):
    """Vercel Python serverless function handler."""
    settings = Settings.from_env()
    body = {
        "ok": True,
        "project": "fotix",
        "message": (
            "This repository contains a Streamlit app (app/streamlit_app.py). "
            "Vercel does not run Streamlit's long-lived app server directly. "
            "Deploy the Streamlit app on Streamlit Community Cloud/Render/Railway."
        ),
        "streamlit_entrypoint": "app/streamlit_app.py",
        "default_targets": [
            {
                "name": t.name,
                "width": t.width,
                "height": t.height,
                "treatment": t.treatment.value,
            }
            for t in settings.default_targets()
        ],
    }

    return {
        "statusCode": 200,
        "headers": {"content-type": "application/json"},
        "body": json.dumps(body),
    }
