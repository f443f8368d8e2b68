"""
Products: derived metadata for a configured product.

- reasons: the closed set of enable states
- metadata: per-option availability, price and completeness
- naming: name, shortname, description and display sections
- cart: priced cart entries

Import from the submodules directly; catalog availability depends on the
reasons module, so this package does not re-export.
"""
