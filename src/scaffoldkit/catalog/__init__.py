"""
scaffoldkit.catalog - Bundled Templates Catalog
===============================================

This package ships ``templates.json``, the catalog used when no other
catalog is configured. It is loaded with ``importlib.resources`` by
``TemplateCatalog.bundled()``.

Catalog Format
--------------
A JSON array of template entries:

    [
      {
        "name": "express-api",
        "repository": "https://github.com/<owner>/<repo>",
        "variables": [
          {"name": "APP_NAME", "prompt": "Project name?", "required": true},
          {"name": "JWT_SECRET", "generate": "url-safe", "length": 48}
        ],
        "create_directories": ["logs"],
        "extra_dependencies": ["dotenv"]
      }
    ]

Every template must declare an ``APP_NAME`` variable: its value names the
directory the project is created in.

See Also
--------
- models.py: TemplateCatalog and TemplateDescriptor models
"""
