# Configuration for FinanZen

import json
import os
from pathlib import Path
from rich.console import Console

console = Console()

DEFAULT_CONFIG = {
    "gemini_model": "gemini-2.5-flash",
    "temperature": 0.7,
    "spreadsheet_title_prefix": "Análise FinanZen",
    "redirect_uri": "http://localhost:8000/api/auth/callback",
    "cors_origins": ["http://localhost:3000"],
    "default_months_to_forecast": 12,
}

def load_app_config():
    """Loads app settings from config/app_config.json or falls back to example."""
    root_dir = Path(__file__).parent.parent
    config_path = root_dir / "config/app_config.json"
    example_path = root_dir / "config/app_config.example.json"

    config = dict(DEFAULT_CONFIG)
    if config_path.exists():
        with open(config_path, 'r', encoding='utf-8') as f:
            config.update(json.load(f))
    elif example_path.exists():
        console.print("[yellow]Warning: config/app_config.json not found. Using example config.[/yellow]")
        with open(example_path, 'r', encoding='utf-8') as f:
            config.update(json.load(f))

    return config

_app_config = load_app_config()

GEMINI_MODEL = _app_config["gemini_model"]
TEMPERATURE = float(_app_config["temperature"])
SPREADSHEET_TITLE_PREFIX = _app_config["spreadsheet_title_prefix"]
REDIRECT_URI = _app_config["redirect_uri"]
CORS_ORIGINS = list(_app_config["cors_origins"])
DEFAULT_MONTHS_TO_FORECAST = int(_app_config["default_months_to_forecast"])

# Secrets never live in the JSON config
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY", "")
GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID", "")
GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET", "")

# drive.file only grants access to spreadsheets this app creates
SCOPES = [
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
    "https://www.googleapis.com/auth/drive.file",
]

SYSTEM_INSTRUCTION = (
    "Você é 'FinanZen', um assistente financeiro virtual amigável e especialista em finanças pessoais. "
    "Seu objetivo é ajudar os usuários a entenderem sua situação financeira e fornecer conselhos práticos, "
    "claros e encorajadores para que alcancem a saúde financeira. Use uma linguagem simples e evite "
    "jargões complexos. Sempre formate os títulos das seções com '###'."
)

# Worksheet names in a saved analysis (in order)
SHEET_NAMES = {
    "summary": "Resumo",
    "income": "Rendas",
    "expenses": "Gastos",
    "debts": "Dívidas",
    "projection": "Projeção",
}


def use_mock() -> bool:
    return os.environ.get("FINANZEN_USE_MOCK", "").lower() in ("1", "true", "yes")
