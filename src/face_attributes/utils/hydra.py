"""Hydra ConfigStore registration utilities."""

from __future__ import annotations

from typing import Any

from hydra.core.config_store import ConfigStore
from loguru import logger


def register(
    cls: type[Any] | None = None,
    *,
    group: str | None = None,
    name: str | None = None,
    **kwargs: Any,
) -> type[Any] | Any:
    """Decorator registering a class as a Hydra ConfigStore node.

    The stored node is ``{"_target_": "<module>.<Class>", **kwargs}``, so the
    class can be selected from the command line (``model=face_cnn``) without
    a YAML file per option.

    Arguments:
        cls: The class to register.
        group: ConfigStore group.  Defaults to the enclosing package name
            with a trailing ``s`` removed (``models`` -> ``model``), matching
            the singular group names used in ``conf/``.
        name: Config name.  Defaults to the class name.
        **kwargs: Default values for the configuration node.
    """

    def _process_class(target_cls: type[Any]) -> type[Any]:
        target_path = f"{target_cls.__module__}.{target_cls.__name__}"
        config_name = name or target_cls.__name__
        config_group = group
        if config_group is None:
            config_group = target_cls.__module__.split(".")[-2].removesuffix("s")

        logger.debug(
            f"Registering {target_cls.__name__} as '{config_name}' "
            f"in group '{config_group}'"
        )
        node = {"_target_": target_path, **kwargs}
        ConfigStore.instance().store(group=config_group, name=config_name, node=node)
        return target_cls

    if cls is None:
        return _process_class
    return _process_class(cls)
