"""
Repository layer over the MongoDB collections.

Repository modules take the database handle as their first argument, translate
driver failures into domain errors and return stored documents as dicts.
"""
