from pydantic import BaseModel, Field

from ..auth.rbac_contract import Role


class RoleRead(BaseModel):
    name: Role
    rank: int
    categories: list[str]
    assignable: bool


class RoleCatalog(BaseModel):
    roles: list[RoleRead]


class SyncResults(BaseModel):
    total: int = 0
    created: int = 0
    updated: int = 0
    errors: int = 0
    errors_list: list[str] = Field(default_factory=list)


class SyncResponse(BaseModel):
    message: str
    results: SyncResults
