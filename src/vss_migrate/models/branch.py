"""Branching model definitions."""

from enum import IntEnum
from typing import Optional

from pydantic import BaseModel, Field

MASTER_BRANCH = 'master'
DEVELOP_BRANCH = 'develop'
PRODUCT_BRANCH = 'product'


class BranchModel(IntEnum):
    """Branch topology of the target repository."""

    # master only
    SINGLE = 0
    # master is production, develop carries ordinary commits
    MASTER_PRODUCTION = 1
    # master carries ordinary commits, product is production
    MASTER_DEVELOP = 2


class BranchTopology(BaseModel):
    """Branch names resolved from a branch model."""

    model: BranchModel = Field(..., description='Branch model')
    production_branch: str = Field(..., description='Branch that receives tags')
    develop_branch: str = Field(..., description='Branch for ordinary commits')

    class Config:
        """Pydantic configuration."""

        frozen = True

    @classmethod
    def from_model(cls, model: int) -> 'BranchTopology':
        """Resolve branch names for a branch model index."""
        model = BranchModel(model)
        if model == BranchModel.MASTER_PRODUCTION:
            production, develop = MASTER_BRANCH, DEVELOP_BRANCH
        elif model == BranchModel.MASTER_DEVELOP:
            production, develop = PRODUCT_BRANCH, MASTER_BRANCH
        else:
            production = develop = MASTER_BRANCH
        return cls(model=model, production_branch=production, develop_branch=develop)

    @property
    def has_production_branch(self) -> bool:
        """Whether tags are preceded by a develop -> production merge."""
        return self.production_branch != self.develop_branch

    @property
    def secondary_branch(self) -> Optional[str]:
        """Branch created off master when the repository is initialized."""
        if not self.has_production_branch:
            return None
        if self.develop_branch == MASTER_BRANCH:
            return self.production_branch
        return self.develop_branch
