"""Hydra ConfigStore registration for teachable_machine components."""

from __future__ import annotations

from typing import Any

from hydra.core.config_store import ConfigStore
from loguru import logger


def register(
    cls: type[Any] | None = None,
    *,
    group: str | None = None,
    name: str | None = None,
    **defaults: Any,
) -> type[Any] | Any:
    """Class decorator storing a ``_target_`` node in Hydra's ConfigStore.

    Usable bare (``@register``) or with arguments
    (``@register(group="extractor", name="mobilenet_v2")``).  When *group*
    is omitted it is taken from the parent package of the defining module,
    so ``teachable_machine.models.head.ClassifierHead`` lands in ``models``.

    Arguments:
        cls: The class to register.
        group: ConfigStore group.  Inferred from the module path if ``None``.
        name: Config name.  Defaults to the class name.
        **defaults: Extra default values stored next to ``_target_``.
    """

    def _store(target_cls: type[Any]) -> type[Any]:
        config_group = group or target_cls.__module__.split(".")[-2]
        config_name = name or target_cls.__name__
        node: dict[str, Any] = {
            "_target_": f"{target_cls.__module__}.{target_cls.__qualname__}",
            **defaults,
        }
        logger.debug(
            f"Registering {target_cls.__name__} as '{config_name}' "
            f"in group '{config_group}'"
        )
        ConfigStore.instance().store(group=config_group, name=config_name, node=node)
        return target_cls

    if cls is None:
        return _store
    return _store(cls)
