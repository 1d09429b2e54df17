from src.domain.entities import Author
from src.rules.models import Rules


class PolicyEngine:
    def __init__(self, rules: Rules):
        self.rules = rules

    def has_capability(self, user: Author | None, capability: str) -> bool:
        """
        Check whether any of the user's roles grants the capability.

        A role listing "*" grants everything.
        """
        if not user:
            return False

        for role in user.roles:
            allowed = self.rules.roles.get(role, [])
            if "*" in allowed or capability in allowed:
                return True
        return False

    def can_edit_posts(self, user: Author) -> bool:
        return self.has_capability(user, "edit_posts")

    def is_administrator(self, user: Author) -> bool:
        return "administrator" in user.roles
