from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

from .config import ConfigError
from .model import CommandDefinition, CommandHandler, CooldownTarget


class CommandRegistry:
    """Name and alias lookup for registered commands.

    Every trigger (canonical name or alias) is unique across the registry.
    Collisions are rejected when a command is added, never at dispatch time.
    """

    def __init__(self, *, case_sensitive: bool = True, label: str = "command") -> None:
        self._case_sensitive = case_sensitive
        self._label = label
        self._definitions: dict[str, CommandDefinition] = {}
        self._triggers: dict[str, CommandDefinition] = {}
        self._frozen = False

    def _key(self, token: str) -> str:
        return token if self._case_sensitive else token.casefold()

    def add(self, definition: CommandDefinition) -> CommandDefinition:
        if self._frozen:
            raise ConfigError(
                f"Cannot register {self._label} {definition.name!r}; "
                "the registry is frozen once dispatching starts."
            )
        pending: dict[str, str] = {}
        for trigger in definition.triggers:
            if not trigger or any(char.isspace() for char in trigger):
                raise ConfigError(
                    f"Invalid {self._label} trigger {trigger!r} for "
                    f"{definition.name!r}; expected a non-empty word."
                )
            key = self._key(trigger)
            existing = self._triggers.get(key)
            if existing is not None:
                raise ConfigError(
                    f"Duplicate {self._label} trigger {trigger!r}: "
                    f"{definition.name!r} collides with {existing.name!r}."
                )
            if key in pending:
                raise ConfigError(
                    f"Duplicate {self._label} trigger {trigger!r} "
                    f"within {definition.name!r}."
                )
            pending[key] = trigger
        if definition.cooldown is not None and definition.cooldown < 0:
            raise ConfigError(
                f"Invalid cooldown for {definition.name!r}; must not be negative."
            )
        for key in pending:
            self._triggers[key] = definition
        self._definitions[definition.name] = definition
        return definition

    def command(
        self,
        name: str,
        *,
        aliases: Iterable[str] = (),
        cooldown: float | None = None,
        cooldown_target: CooldownTarget | None = None,
        description: str = "",
        usage: str | None = None,
        slash: bool = False,
    ) -> Callable[[CommandHandler], CommandHandler]:
        """Decorator form of ``add``; returns the handler unchanged."""

        def decorator(handler: CommandHandler) -> CommandHandler:
            self.add(
                CommandDefinition(
                    name=name,
                    handler=handler,
                    aliases=frozenset(aliases),
                    cooldown=cooldown,
                    cooldown_target=cooldown_target,
                    description=description or (handler.__doc__ or "").strip(),
                    usage=usage,
                    slash=slash,
                )
            )
            return handler

        return decorator

    def freeze(self) -> None:
        self._frozen = True

    def resolve(self, token: str) -> CommandDefinition | None:
        if not token:
            return None
        return self._triggers.get(self._key(token))

    def get(self, name: str) -> CommandDefinition | None:
        return self._definitions.get(name)

    def names(self) -> list[str]:
        return list(self._definitions)

    def __iter__(self) -> Iterator[CommandDefinition]:
        return iter(list(self._definitions.values()))

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and self.resolve(token) is not None
