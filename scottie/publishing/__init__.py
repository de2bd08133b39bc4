"""
publishing/ — Todo lo relacionado con publicar contenido en GitHub.

Módulos:
- publisher.py    → Punto de entrada: PR create-or-update y commit directo
- changeset.py    → Layouts de contenido y armado de TreeEntry
- branches.py     → Branch nuevo vs. branch del PR abierto
- commits.py      → Árbol + commit + avance de ref
- pr_manager.py   → Creación de PR con reintentos y reviewers
- prettier.py     → Formateo de archivos antes del commit
- checkout.py     → Lectura del contenido publicado en main
- github_host.py  → RepositoryHost sobre la API REST de GitHub
- github_app.py   → Autenticación como GitHub App
- memory_host.py  → RepositoryHost en memoria (tests y dry runs)
"""
