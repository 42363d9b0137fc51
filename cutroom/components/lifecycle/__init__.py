"""
Lifecycle component - delegation, review and publish of video assets.
"""

from cutroom.components.lifecycle.component import LifecycleComponent
from cutroom.components.lifecycle.models import (
    AcceptDelegationInput,
    CreateWorkspaceInput,
    DecideInput,
    GetAssetInput,
    ListAssetsInput,
    ListWorkspacesInput,
    PublishInput,
    PublishOutput,
    SubmitEditInput,
    SubmitOriginalInput,
)
from cutroom.components.lifecycle.ports import (
    AccountLookupPort,
    CredentialResolverPort,
    PublishPipelinePort,
)

__all__ = [
    # Component
    "LifecycleComponent",
    # Input models
    "AcceptDelegationInput",
    "CreateWorkspaceInput",
    "DecideInput",
    "GetAssetInput",
    "ListAssetsInput",
    "ListWorkspacesInput",
    "PublishInput",
    "SubmitEditInput",
    "SubmitOriginalInput",
    # Output models
    "PublishOutput",
    # Ports
    "AccountLookupPort",
    "CredentialResolverPort",
    "PublishPipelinePort",
]
