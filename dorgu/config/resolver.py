"""
Layered configuration resolver.

Precedence, highest to lowest: CLI flags > per-app config > workspace config
> global user config > built-in defaults. Resolution is field-level: every
scalar takes the first layer that sets it, string maps merge additively with
higher layers winning on key collisions, and named resource profiles merge
per profile and per quantity.
"""

from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel

from dorgu.config.models import (
    AnnotationConfig,
    AppConfig,
    ArgoCDConfig,
    AutomatedConfig,
    Capabilities,
    CIConfig,
    ContainerSecurityContext,
    DefaultsConfig,
    DestinationConfig,
    EffectiveConfig,
    GlobalConfig,
    IngressConfig,
    LabelConfig,
    LLMSettings,
    NamingConfig,
    OrgConfig,
    OrgInfo,
    PodSecurityContext,
    ResourceConfig,
    ResourceSpec,
    ResourceValues,
    SeccompProfile,
    SecurityConfig,
    SyncPolicyConfig,
    TLSConfig,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

Layer = Union[OrgConfig, GlobalConfig, AppConfig, None]


def is_set(value: Any) -> bool:
    """A value is set unless it is the zero value of its type.

    ``False`` counts as set: booleans are optional and ``None`` means unset,
    so an explicit ``false`` is a real choice that must win.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, (str, int, float, list, tuple, dict)):
        return bool(value)
    return True


def first_set(*values: Any, default: Any = None) -> Any:
    """Return the first value that is set, else ``default``.

    This is the single precedence primitive: callers list candidates from
    highest to lowest precedence.
    """
    for value in values:
        if is_set(value):
            return value
    return default


def _dict_value_model(annotation: Any) -> Optional[Type[BaseModel]]:
    """For ``Dict[str, SomeModel]`` annotations, return ``SomeModel``."""
    if get_origin(annotation) is not dict:
        return None
    args = get_args(annotation)
    if len(args) == 2 and isinstance(args[1], type) and issubclass(args[1], BaseModel):
        return args[1]
    return None


def _merge_model(model_cls: Type[ModelT], layers: Sequence[ModelT]) -> ModelT:
    """Merge instances of one model, ``layers`` ordered highest precedence first."""
    blank = model_cls()
    values: Dict[str, Any] = {}
    for name, field in model_cls.model_fields.items():
        candidates = [getattr(layer, name) for layer in layers]
        zero = getattr(blank, name)
        if isinstance(zero, BaseModel):
            values[name] = _merge_model(type(zero), candidates)
        elif isinstance(zero, dict):
            value_model = _dict_value_model(field.annotation)
            if value_model is not None:
                values[name] = _merge_model_map(value_model, candidates)
            else:
                values[name] = _merge_map(candidates)
        else:
            values[name] = first_set(*candidates, default=zero)
    return model_cls(**values)


def _merge_map(maps: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for mapping in reversed(maps):
        merged.update(mapping or {})
    return merged


def _merge_model_map(value_model: Type[ModelT], maps: Sequence[Dict[str, ModelT]]) -> Dict[str, ModelT]:
    keys: List[str] = []
    for mapping in reversed(maps):
        for key in mapping or {}:
            if key not in keys:
                keys.append(key)
    return {
        key: _merge_model(value_model, [m[key] for m in maps if m and key in m])
        for key in keys
    }


def merge_layers(layers: Sequence[OrgConfig]) -> OrgConfig:
    """Merge organization config layers ordered highest precedence first."""
    return _merge_model(OrgConfig, list(layers))


def _as_layer(source: Layer) -> OrgConfig:
    if source is None:
        return OrgConfig()
    if isinstance(source, (GlobalConfig, AppConfig)):
        return source.as_layer()
    return source


def resolve(
    defaults: Optional[OrgConfig] = None,
    global_config: Layer = None,
    workspace_config: Layer = None,
    app_config: Layer = None,
    cli_overrides: Optional[OrgConfig] = None,
) -> EffectiveConfig:
    """
    Compute the effective configuration for one invocation.

    Any source may be ``None`` (absent or unreadable layer). ``defaults``
    falls back to the built-in defaults. No I/O is performed and nothing
    is raised: schema problems are the loader's concern.

    Args:
        defaults: Built-in default layer
        global_config: Global user config (``GlobalConfig`` or a projected layer)
        workspace_config: Workspace ``.dorgu.yaml``
        app_config: Per-app ``.dorgu.yaml`` (``AppConfig`` or a projected layer)
        cli_overrides: Layer built from command-line flags

    Returns:
        The merged EffectiveConfig
    """
    base = defaults if defaults is not None else builtin_defaults()
    return merge_layers([
        _as_layer(cli_overrides),
        _as_layer(app_config),
        _as_layer(workspace_config),
        _as_layer(global_config),
        base,
    ])


def cli_layer(
    namespace: Optional[str] = None,
    registry: Optional[str] = None,
    llm_provider: Optional[str] = None,
    llm_model: Optional[str] = None,
) -> OrgConfig:
    """Build the highest-precedence layer from command-line flag values."""
    return OrgConfig(
        defaults=DefaultsConfig(namespace=namespace or ""),
        ci=CIConfig(registry=registry or ""),
        llm=LLMSettings(provider=llm_provider or "", model=llm_model or ""),
    )


def builtin_defaults() -> OrgConfig:
    """The hard-coded lowest-precedence layer."""
    return OrgConfig(
        version="1",
        naming=NamingConfig(pattern="{app}", dns_safe=True),
        defaults=DefaultsConfig(namespace="default"),
        resources=ResourceConfig(
            defaults=ResourceSpec(
                requests=ResourceValues(cpu="100m", memory="128Mi"),
                limits=ResourceValues(cpu="500m", memory="512Mi"),
            ),
            profiles={
                "api": ResourceSpec(
                    requests=ResourceValues(cpu="100m", memory="256Mi"),
                    limits=ResourceValues(cpu="1000m", memory="1Gi"),
                ),
                "worker": ResourceSpec(
                    requests=ResourceValues(cpu="500m", memory="512Mi"),
                    limits=ResourceValues(cpu="2000m", memory="2Gi"),
                ),
                "web": ResourceSpec(
                    requests=ResourceValues(cpu="50m", memory="128Mi"),
                    limits=ResourceValues(cpu="500m", memory="512Mi"),
                ),
            },
        ),
        labels=LabelConfig(),
        annotations=AnnotationConfig(),
        security=SecurityConfig(
            enforce_baseline=True,
            pod_security_context=PodSecurityContext(
                run_as_non_root=True,
                seccomp_profile=SeccompProfile(type="RuntimeDefault"),
            ),
            container_security_context=ContainerSecurityContext(
                allow_privilege_escalation=False,
                read_only_root_filesystem=True,
                capabilities=Capabilities(drop=["ALL"]),
            ),
        ),
        ingress=IngressConfig(
            class_name="nginx",
            domain_suffix=".local",
            tls=TLSConfig(enabled=False),
        ),
        argocd=ArgoCDConfig(
            project="default",
            destination=DestinationConfig(server="https://kubernetes.default.svc"),
            sync_policy=SyncPolicyConfig(automated=AutomatedConfig(prune=False, self_heal=False)),
        ),
        ci=CIConfig(provider="github-actions"),
        llm=LLMSettings(provider="openai", model="gpt-4o-mini"),
        org=OrgInfo(),
    )
