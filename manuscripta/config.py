"""Configuration for Manuscripta.

One process-wide ``Settings`` object holds the storage paths, the LLM
profiles and the editor tuning. It is built from the YAML files in
``.metadata/``:

* ``llm_profiles.yaml``: Gemini credentials and the active profile id
* ``editor.yaml``: author name, page geometry, debounce delays, default sections

Files missing from ``.metadata/`` are seeded from ``.metadata.example/``.
The Gemini model registry in ``manuscripta/data/`` ships with the package.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
PROFILES_FILE = "llm_profiles.yaml"
EDITOR_FILE = "editor.yaml"
MODEL_REGISTRY = Path(__file__).resolve().parent / "data" / "llm_models.yaml"


@dataclass
class LLMModel:
    """A model offered in the preferences dialog."""

    id: str
    name: str
    provider_id: str
    provider_name: str
    base_url: str
    context_window: int = 0
    max_output: int = 0


@dataclass
class LLMProfile:
    """Named Gemini credential: model id plus API key."""

    id: str
    name: str
    model: str
    api_key: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Optional["LLMProfile"]:
        """Build a profile, or None when id, model or key is missing."""
        if not all(data.get(key) for key in ("id", "model", "api_key")):
            return None
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["model"]),
            model=str(data["model"]),
            api_key=str(data["api_key"]),
        )

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name, "model": self.model, "api_key": self.api_key}


_DEFAULT_SECTIONS = [
    "Abstract",
    "Background",
    "Literature Review",
    "Methodology",
    "Questionnaire",
    "Analysis",
    "References",
]


@dataclass
class EditorSettings:
    """Editor, pagination and suggestion tuning."""

    author: str = ""
    page_height: int = 1056
    page_gap: int = 40
    lookahead: int = 500
    topic_debounce_ms: int = 800
    context_debounce_ms: int = 5000
    context_min_length: int = 100
    context_sample_length: int = 1000
    placeholder: str = "Start writing this section..."
    default_sections: list[str] = field(default_factory=lambda: list(_DEFAULT_SECTIONS))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EditorSettings":
        """Apply known keys from *data* over the defaults.

        Integer fields that do not parse keep their default; blank strings
        and empty section lists are ignored.
        """
        settings = cls()
        for f in fields(cls):
            value = data.get(f.name)
            if value is None:
                continue
            default = getattr(settings, f.name)
            if isinstance(default, int):
                try:
                    setattr(settings, f.name, int(value))
                except (TypeError, ValueError):
                    logger.warning("Ignoring invalid %s in editor settings: %r", f.name, value)
            elif isinstance(default, list):
                if isinstance(value, list):
                    names = [str(v) for v in value if str(v).strip()]
                    if names:
                        settings.default_sections = names
            elif str(value).strip():
                setattr(settings, f.name, str(value))
        return settings


class _SingletonMeta(type):
    """Returns the cached instance on every call after the first."""

    _instances: dict[type, Any] = {}

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        instance = cls._instances.get(cls)
        if instance is None:
            instance = super().__call__(*args, **kwargs)
            cls._instances[cls] = instance
        return instance


@dataclass
class Settings(metaclass=_SingletonMeta):
    """Process-wide settings.

    ``Settings.load()`` builds the instance from ``.metadata/`` once and
    returns it afterwards; ``reload()`` reads the files again and
    ``reset()`` drops the cached instance (tests).
    """

    db_path: Path = Path("manuscripts.db")
    metadata_dir: Path = Path(".metadata")
    export_dir: Path = Path("exports")
    upload_dir: Path = Path("uploads")
    llm_profiles: list[LLMProfile] = field(default_factory=list)
    active_llm_id: Optional[str] = None
    editor: EditorSettings = field(default_factory=EditorSettings)

    @property
    def active_llm(self) -> Optional[LLMProfile]:
        """The selected profile, else one built from ``GEMINI_API_KEY``, else None."""
        for profile in self.llm_profiles:
            if self.active_llm_id and profile.id == self.active_llm_id:
                return profile
        api_key = os.environ.get("GEMINI_API_KEY")
        if not api_key:
            return None
        return LLMProfile(id="env", name="GEMINI_API_KEY", model=DEFAULT_MODEL, api_key=api_key)

    @property
    def profiles_path(self) -> Path:
        return self.metadata_dir / PROFILES_FILE

    @classmethod
    def load(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Return the settings instance, reading ``.metadata/`` on first use.

        Args:
            base_dir: Directory holding ``.metadata/`` and the data files;
                defaults to the repository root
        """
        cached = _SingletonMeta._instances.get(cls)
        if cached is not None:
            return cached

        root = base_dir or Path(__file__).resolve().parent.parent
        metadata_dir = root / ".metadata"
        _seed_metadata(root / ".metadata.example", metadata_dir)
        profiles, active_id = _load_llm_profiles(metadata_dir / PROFILES_FILE)

        return cls(
            db_path=root / "manuscripts.db",
            metadata_dir=metadata_dir,
            export_dir=root / "exports",
            upload_dir=root / "uploads",
            llm_profiles=profiles,
            active_llm_id=active_id,
            editor=load_editor_settings(metadata_dir / EDITOR_FILE),
        )

    @classmethod
    def reload(cls, base_dir: Optional[Path] = None) -> "Settings":
        cls.reset()
        return cls.load(base_dir)

    @classmethod
    def reset(cls) -> None:
        _SingletonMeta._instances.pop(cls, None)


def _seed_metadata(example_dir: Path, metadata_dir: Path) -> None:
    """Create ``metadata_dir`` and copy in any example file it lacks."""
    metadata_dir.mkdir(parents=True, exist_ok=True)
    if not example_dir.is_dir():
        return
    for template in sorted(example_dir.iterdir()):
        target = metadata_dir / template.name
        if template.is_file() and not target.exists():
            shutil.copy2(template, target)
            print(f"[Manuscripta] Created .metadata/{template.name} from template")


def _read_yaml(path: Path) -> dict[str, Any]:
    """Mapping stored in *path*; empty when missing, unreadable or not a mapping."""
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not read %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _load_llm_profiles(path: Path) -> tuple[list[LLMProfile], Optional[str]]:
    """Profiles and active id from ``llm_profiles.yaml``; incomplete entries are skipped."""
    data = _read_yaml(path)
    profiles = []
    for entry in data.get("profiles") or []:
        profile = LLMProfile.from_dict(entry) if isinstance(entry, dict) else None
        if profile is not None:
            profiles.append(profile)
    return profiles, data.get("active") or None


def save_llm_profiles(path: Path, profiles: list[LLMProfile], active_id: Optional[str] = None) -> None:
    """Write profiles and the active id back to ``llm_profiles.yaml``."""
    document = {"active": active_id, "profiles": [p.to_dict() for p in profiles]}
    with open(path, "w", encoding="utf-8") as f:
        f.write("# Gemini credentials; 'active' is the id of the profile in use\n\n")
        yaml.safe_dump(document, f, allow_unicode=True, sort_keys=False)


def load_editor_settings(path: Path) -> EditorSettings:
    return EditorSettings.from_dict(_read_yaml(path))


def load_llm_models(path: Path = MODEL_REGISTRY) -> list[LLMModel]:
    """Flatten the provider/model registry into one list."""
    models: list[LLMModel] = []
    for provider in _read_yaml(path).get("providers") or []:
        for entry in provider.get("models") or []:
            try:
                models.append(
                    LLMModel(
                        id=str(entry["id"]),
                        name=str(entry.get("name") or entry["id"]),
                        provider_id=provider.get("id", ""),
                        provider_name=provider.get("name", ""),
                        base_url=provider.get("base_url", ""),
                        context_window=int(entry.get("context_window") or 0),
                        max_output=int(entry.get("max_output") or 0),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed model entry: %r", entry)
    return models
