# Actions each role may perform
ROLES = {
    'admin': ('create', 'read', 'update', 'delete', 'manageUsers'),
    'editor': ('create', 'read', 'update', 'delete'),
    'viewer': ('create', 'read'),
}
