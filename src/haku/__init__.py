"""
Haku - schema-validated entity repositories.

    from haku import EntitySchema, StringField
    from haku.core.orm import SQLAlchemyEntityRepository
"""

__version__ = "0.1.0"

from haku.core import *  # noqa
