"""Manifest rendering.

Why it lives in adapters:
- YAML templates are an infrastructure detail (Jinja2).
- Services only ask for a manifest by name and hand the text to kubectl.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from core.config import AppSettings
from core.domain.models import ClusterProfile


_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

NAMESPACE = "namespace.yaml"
CONFIG_MANIFESTS = ("nlq-config.yaml", "configmap.yaml", "secret.yaml")
POSTGRES = "postgres-deployment.yaml"
BACKEND = "backend-deployment.yaml"
FRONTEND = "frontend-deployment.yaml"
INGRESS = "common-ingress.yaml"

# Apply order; cleanup walks it backwards.
MANIFEST_ORDER: tuple[str, ...] = (
    NAMESPACE,
    *CONFIG_MANIFESTS,
    POSTGRES,
    BACKEND,
    FRONTEND,
    INGRESS,
)


def _get_env(settings: AppSettings) -> Environment:
    search_path = [str(_TEMPLATES_DIR)]
    if settings.manifests_dir is not None:
        search_path.insert(0, str(settings.manifests_dir))
    return Environment(
        loader=FileSystemLoader(search_path),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )


def _context(settings: AppSettings, profile: ClusterProfile) -> dict[str, object]:
    return {
        "settings": settings,
        "profile": profile,
        "namespace": settings.namespace,
        "backend_image": settings.image_ref(settings.backend_image),
        "frontend_image": settings.image_ref(settings.frontend_image),
    }


def render_manifest(name: str, *, settings: AppSettings, profile: ClusterProfile) -> str:
    """Render one manifest template (`<name>.j2`)."""

    template = _get_env(settings).get_template(f"{name}.j2")
    return template.render(**_context(settings, profile))


def render_all(*, settings: AppSettings, profile: ClusterProfile) -> dict[str, str]:
    return {
        name: render_manifest(name, settings=settings, profile=profile)
        for name in MANIFEST_ORDER
    }


def write_rendered(*, settings: AppSettings, profile: ClusterProfile, output_dir: Path) -> list[Path]:
    """Write every rendered manifest under `output_dir` (for review or GitOps)."""

    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for name, text in render_all(settings=settings, profile=profile).items():
        path = output_dir / name
        path.write_text(text, encoding="utf-8")
        written.append(path)
    return written
