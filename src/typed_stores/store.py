"""Build the TypeScript store module for each registered model."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from typed_stores.emitter import TypeScriptEmitter
from typed_stores.types import StoreRegistration

logger = logging.getLogger(__name__)


STORE_CLASS_TEMPLATE = """\
import {{ CosmosClient, Database, Container }} from "@azure/cosmos";

class {name}Store {{
  private client: CosmosClient;
  private databaseId: string;
  private containerId: string;
  private container!: Container;
  private database!: Database;

  constructor(client: CosmosClient, databaseId: string, containerId: string) {{
    this.client = client;
    this.databaseId = databaseId;
    this.containerId = containerId;
  }}

  async init() {{
    const {{ database }} = await this.client.databases.createIfNotExists({{
      id: this.databaseId,
    }});
    const {{ container }} = await database.containers.createIfNotExists({{
      id: this.containerId,
    }});
    this.database = database;
    this.container = container;
  }}

  async get(id: string): Promise<{name} | undefined> {{
    const {{ resource }} = await this.container.item(id).read<{name}>();
    return resource;
  }}
}}
"""


def render_store_class(name: str) -> str:
    """Return the store wrapper class for the model declared as ``name``."""
    return STORE_CLASS_TEMPLATE.format(name=name)


@dataclass
class StoreArtifact:
    """The generated text for one store registration."""

    name: str
    collection_name: str
    text: str
    declarations: list[str] = field(default_factory=list)

    @property
    def class_name(self) -> str:
        """Name of the generated store wrapper class."""
        return f"{self.name}Store"


class StoreDeclarationBuilder:
    """Assemble store modules from registrations, one emitter pass each."""

    def __init__(self, emitter: TypeScriptEmitter | None = None) -> None:
        self.emitter = emitter if emitter is not None else TypeScriptEmitter()

    def build(self, registration: StoreRegistration) -> StoreArtifact:
        """Build the store module for a single registration.

        Raises:
            EmitterError: The root's type graph cannot be emitted.
        """
        model = registration.model
        name = self.emitter.get_model_declaration_name(model)
        resolution = self.emitter.resolve(model)

        parts = [render_store_class(name)]
        parts.extend(decl + "\n" for decl in resolution.declarations)
        text = "\n".join(parts)

        logger.debug(
            "Built store %s (%d declarations)", name, len(resolution.declarations)
        )
        return StoreArtifact(
            name=name,
            collection_name=registration.display_name,
            text=text,
            declarations=resolution.declarations,
        )
