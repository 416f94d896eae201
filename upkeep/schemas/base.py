"""
schemas/base.py
---------------
Shared Pydantic config.

Dashboards and the dispatch workflow read camelCase field names
(issueTitle, propertyId, tenantEmail, ...). Responses are serialised by
alias; requests accept both camelCase and snake_case.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
