from cutroom.domain.entities import Account, Asset, Workspace
from cutroom.rules.models import Rules


class PolicyEngine:
    def __init__(self, rules: Rules):
        self.rules = rules

    def check_permission(self, account: Account | None, action: str) -> bool:
        """
        Role-based check against `rbac.roles` in rules.yaml.
        Supports "*" and scoped wildcards such as "asset:*".
        """
        if not account:
            return False

        allowed_actions = self.rules.rbac.roles.get(account.role, [])
        if "*" in allowed_actions or action in allowed_actions:
            return True

        if ":" in action:
            scope = action.split(":")[0]
            if f"{scope}:*" in allowed_actions:
                return True

        return False

    def owns_workspace(self, account: Account, workspace: Workspace) -> bool:
        return str(workspace.owner_id) == str(account.id)

    def can_create_workspace(self, account: Account) -> bool:
        return self.check_permission(account, "workspace:create")

    def can_submit_original(self, account: Account, workspace: Workspace) -> bool:
        return self.owns_workspace(account, workspace) and self.check_permission(
            account, "asset:submit"
        )

    def can_decide(self, account: Account, workspace: Workspace) -> bool:
        return self.owns_workspace(account, workspace) and self.check_permission(
            account, "asset:decide"
        )

    def can_publish(self, account: Account, workspace: Workspace) -> bool:
        return self.owns_workspace(account, workspace) and self.check_permission(
            account, "asset:publish"
        )

    def can_submit_edit(self, account: Account, asset: Asset) -> bool:
        # The assignee guard can be relaxed in rules; ownership of the asset is never required.
        if not self.rules.review.enforce_assignee_on_edit:
            return True
        return str(asset.assigned_to) == str(account.id)

    def can_view_asset(self, account: Account, asset: Asset, workspace: Workspace) -> bool:
        if self.owns_workspace(account, workspace):
            return True
        return str(asset.assigned_to) == str(account.id)
