"""
Sistema de Serializers inspirado no DRF, mas baseado em Pydantic.

Características:
- Validação automática via Pydantic (InputSchema)
- Separação clara entre Input e Output schemas
- Hooks validate_<campo> e validate por serializer
- Uma instância nova por requisição, ligada ao RequestContext

Ciclo de vida dentro de um ViewSet:
    serializer = ArticleSerializer()
    serializer.set_context(ctx)
    serializer.set_meta(serializer.meta())
    await ctx.bind(serializer)
    serializer.set_child(serializer)

    if await serializer.is_valid():
        article = await serializer.create()
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError

from viewkit.exceptions import ImproperlyConfigured, ValidationException, pydantic_errors

if TYPE_CHECKING:
    from viewkit.context import RequestContext
    from viewkit.models import Model


_UNBOUND = object()


class InputSchema(BaseModel):
    """
    Schema base para dados de entrada (request body).

    Exemplo:
        class ArticleInput(InputSchema):
            title: str = PydanticField(min_length=1, max_length=200)
            body: str = ""
            published: bool = False
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_default=True,
        extra="forbid",
        from_attributes=True,
    )


class OutputSchema(BaseModel):
    """
    Schema base para dados de saída (response body).

    Exemplo:
        class ArticleOutput(OutputSchema):
            id: int
            title: str
            created_at: datetime
    """

    model_config = ConfigDict(
        from_attributes=True,
        validate_default=True,
    )

    @classmethod
    def from_orm_list(cls, objects: Sequence[Any]) -> list["OutputSchema"]:
        return [cls.model_validate(obj) for obj in objects]


@dataclass(frozen=True)
class SerializerMeta:
    """
    Metadados calculados a partir da declaração do serializer.

    Produzidos por ModelSerializer.meta() e entregues de volta via
    set_meta() antes do bind.
    """

    model: type["Model"]
    input_schema: type[InputSchema]
    output_schema: type[OutputSchema]
    fields: tuple[str, ...]
    read_only_fields: tuple[str, ...] = ()
    partial: bool = False


class ModelSerializer:
    """
    Serializer com validação e persistência para um Model.

    Exemplo:
        class ArticleSerializer(ModelSerializer):
            model = Article
            input_schema = ArticleInput
            output_schema = ArticleOutput
            read_only_fields = ["id", "created_at"]

            def validate_title(self, value):
                if value.lower().startswith("draft"):
                    raise ValueError("Title cannot start with 'draft'")
                return value

            async def perform_create(self, data):
                data["slug"] = slugify(data["title"])
                return await super().perform_create(data)
    """

    model: ClassVar[type["Model"]]
    input_schema: ClassVar[type[InputSchema]]
    output_schema: ClassVar[type[OutputSchema]]

    read_only_fields: ClassVar[list[str]] = []
    exclude_on_create: ClassVar[list[str]] = []
    exclude_on_update: ClassVar[list[str]] = []

    def __init__(self, instance: "Model | None" = None) -> None:
        self.instance = instance
        self.context: "RequestContext | None" = None
        self.child: "ModelSerializer | None" = None
        self.initial_data: Any = _UNBOUND
        self._meta: SerializerMeta | None = None
        self._errors: list[dict[str, Any]] = []
        self._validated_data: dict[str, Any] | None = None

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def set_context(self, context: "RequestContext") -> None:
        self.context = context

    def meta(self) -> SerializerMeta:
        """
        Calcula os metadados a partir dos atributos de classe.

        Raises:
            ImproperlyConfigured: se model ou schemas não foram declarados
        """
        cls = type(self)
        missing = [
            attr for attr in ("model", "input_schema", "output_schema")
            if getattr(cls, attr, None) is None
        ]
        if missing:
            raise ImproperlyConfigured(
                f"{cls.__name__} must define {', '.join(missing)}",
                details={"serializer": cls.__name__, "missing": missing},
            )

        action = self.context.action if self.context is not None else None
        return SerializerMeta(
            model=cls.model,
            input_schema=cls.input_schema,
            output_schema=cls.output_schema,
            fields=tuple(cls.input_schema.model_fields),
            read_only_fields=tuple(cls.read_only_fields),
            partial=action == "partial_update",
        )

    def set_meta(self, meta: SerializerMeta) -> None:
        self._meta = meta

    def get_meta(self) -> SerializerMeta:
        if self._meta is None:
            raise ImproperlyConfigured(
                f"{type(self).__name__}: set_meta() must be called before use"
            )
        return self._meta

    def bind(self, data: Any) -> None:
        """
        Recebe o payload decodificado da requisição.

        Raises:
            TypeError: se o payload não for um objeto JSON
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        self.initial_data = dict(data)
        self._errors = []
        self._validated_data = None

    def set_child(self, child: "ModelSerializer") -> None:
        """Define o serializer concreto que recebe perform_create/perform_update."""
        self.child = child

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    async def is_valid(self) -> bool:
        """
        Valida o payload ligado.

        Ordem: InputSchema (parcial em partial_update), hooks
        validate_<campo>, e por fim validate(data).
        """
        meta = self.get_meta()
        if self.initial_data is _UNBOUND:
            raise ImproperlyConfigured(
                f"{type(self).__name__}: bind() must be called before is_valid()"
            )

        self._errors = []
        self._validated_data = None

        payload = {
            key: value
            for key, value in self.initial_data.items()
            if key not in meta.read_only_fields
        }

        try:
            data = self._validate_schema(meta, payload)
        except PydanticValidationError as e:
            self._errors = pydantic_errors(e)
            return False

        for field_name in list(data):
            hook = getattr(self, f"validate_{field_name}", None)
            if hook is None:
                continue
            try:
                data[field_name] = await _maybe_await(hook(data[field_name]))
            except ValueError as e:
                self._errors.append({"loc": [field_name], "msg": str(e), "type": "value_error"})
            except ValidationException as e:
                self._errors.extend(e.errors)

        if not self._errors:
            try:
                data = await _maybe_await(self.validate(data))
            except ValueError as e:
                self._errors.append({"loc": [], "msg": str(e), "type": "value_error"})
            except ValidationException as e:
                self._errors.extend(e.errors)

        if self._errors:
            return False

        self._validated_data = data
        return True

    def _validate_schema(self, meta: SerializerMeta, payload: dict[str, Any]) -> dict[str, Any]:
        schema = meta.input_schema
        if not meta.partial:
            return schema.model_validate(payload).model_dump()

        # PATCH: campos omitidos vêm da instância atual
        current: dict[str, Any] = {}
        if self.instance is not None:
            for field_name in schema.model_fields:
                if hasattr(self.instance, field_name):
                    current[field_name] = getattr(self.instance, field_name)
        validated = schema.model_validate({**current, **payload})
        return {k: v for k, v in validated.model_dump().items() if k in payload}

    def validate(self, data: dict[str, Any]) -> dict[str, Any]:
        """
        Validação entre campos. Sobrescreva e levante ValueError.

        Pode ser async.
        """
        return data

    @property
    def errors(self) -> list[dict[str, Any]]:
        return list(self._errors)

    @property
    def validated_data(self) -> dict[str, Any]:
        if self._validated_data is None:
            raise ImproperlyConfigured(
                f"{type(self).__name__}: is_valid() must return True before accessing validated_data"
            )
        return self._validated_data

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _target(self) -> "ModelSerializer":
        return self.child if self.child is not None else self

    def _session(self) -> Any:
        if self.context is None:
            raise ImproperlyConfigured(
                f"{type(self).__name__}: set_context() must be called before saving"
            )
        return self.context.session

    async def create(self) -> "Model":
        """Persiste um novo registro com validated_data."""
        data = dict(self.validated_data)
        self.instance = await self._target().perform_create(data)
        return self.instance

    async def update(self, instance: "Model") -> "Model":
        """Aplica validated_data sobre a instância e persiste."""
        data = dict(self.validated_data)
        self.instance = await self._target().perform_update(instance, data)
        return self.instance

    async def perform_create(self, data: dict[str, Any]) -> "Model":
        meta = self.get_meta()
        for field_name in self.exclude_on_create:
            data.pop(field_name, None)
        instance = meta.model(**data)
        return await instance.save(self._session())

    async def perform_update(self, instance: "Model", data: dict[str, Any]) -> "Model":
        meta = self.get_meta()
        excluded = set(self.exclude_on_update) | set(meta.read_only_fields)
        for field_name, value in data.items():
            if field_name not in excluded:
                setattr(instance, field_name, value)
        return await instance.save(self._session())

    # ------------------------------------------------------------------
    # Representation
    # ------------------------------------------------------------------

    def to_representation(self, instance: "Model") -> dict[str, Any]:
        """Serializa a instância via output_schema (JSON-safe)."""
        return self.get_meta().output_schema.model_validate(instance).model_dump(mode="json")

    @property
    def data(self) -> dict[str, Any]:
        if self.instance is None:
            return {}
        return self.to_representation(self.instance)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} bound={self.initial_data is not _UNBOUND}>"


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
