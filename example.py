"""Example usage of the typed_stores library."""

from pathlib import Path

from typed_stores import EmitterOptions, StoreWriter, TypeParser, emit_stores

# Declare models using the DSL; @store marks the ones that get a store class
schema = """
model Owner {
    name: string,
    pets: Pet[],
}

model Page<T> {
    items: T[],
    total: int64,
}

@store("pets")
model Pet {
    name: string,
    tags?: string[],
    owner?: Owner,
    size: 1 | 2 | 3,
}

@store
model Catalog {
    featured: Page<Pet>,
    owners: Page<Owner[]>,
}
"""

registry = TypeParser().parse(schema)

# Write one TypeScript module per store into ./example_output/store
options = EmitterOptions(output_dir=Path("./example_output"))
report = emit_stores(registry, StoreWriter.from_options(options), options)

for path in report.written:
    print(f"--- {path} ---")
    print(path.read_text(encoding="utf-8"))
