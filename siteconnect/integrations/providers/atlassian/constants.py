ATLASSIAN_PROVIDER_SLUG = "atlassian"

ATLASSIAN_AUTHORIZE_PATH = "/authorize"
ATLASSIAN_TOKEN_PATH = "/oauth/token"
ATLASSIAN_REVOKE_PATH = "/oauth/revoke"

ATLASSIAN_ACCESSIBLE_RESOURCES_PATH = "/oauth/token/accessible-resources"
ATLASSIAN_SITE_API_PATH = "/ex/jira/{tenant_id}/rest/api/3"
ATLASSIAN_MYSELF_PATH = f"{ATLASSIAN_SITE_API_PATH}/myself"
ATLASSIAN_PROJECT_SEARCH_PATH = f"{ATLASSIAN_SITE_API_PATH}/project/search"

ATLASSIAN_PROJECT_PAGE_SIZE = 50
ATLASSIAN_MAX_PROJECT_PAGES = 100

INVALID_GRANT_ERRORS = frozenset({"invalid_grant", "unauthorized_client"})
