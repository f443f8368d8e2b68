"""
Catalog: the versioned product definitions the engine reads.

- enums: placement, qualifier and display enumerations
- models: frozen product, modifier type and option definitions
- snapshot: a read-only view of the catalog at one instant
- store: the temporal, versioned catalog store
- availability: time and channel availability checks
- schemas / validator: catalog document ingestion and integrity checks

Import from the submodules directly; expressions and catalog models refer to
each other, so this package does not re-export.
"""
