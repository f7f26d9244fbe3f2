# Bundled hosts and integrations used when no --config file is given
from typing import Any

# ABOUTME: Same JSON shape load_deploy_config() reads from disk
DEFAULT_CONFIG: dict[str, Any] = {
    "a11y-devkit": {
        "version": "1.0",
        "namespace": "a11y-devkit",
    },
    "hosts": [
        {
            "id": "claude",
            "displayName": "Claude Code",
            "skillsFolder": ".claude/skills",
            "mcpConfigFile": ".claude/mcp.json",
            "serverSectionKey": "mcpServers",
        },
        {
            "id": "copilot",
            "displayName": "GitHub Copilot (VS Code)",
            "skillsFolder": ".github/skills",
            "mcpConfigFile": ".vscode/mcp.json",
            "serverSectionKey": "servers",
            "platformOverrides": {
                "windows": {"mcpConfigFile": "Code/User/mcp.json"},
                "mac": {"mcpConfigFile": "Code/User/mcp.json"},
            },
        },
        {
            "id": "cursor",
            "displayName": "Cursor",
            "serverSectionKey": "mcpServers",
        },
        {
            "id": "codex",
            "displayName": "Codex CLI",
            "skillsFolder": ".codex/skills",
            "mcpConfigFile": ".codex/config.toml",
            "serverSectionKey": "mcp_servers",
        },
    ],
    "integrations": [
        {
            "name": "wcag",
            "repoUrl": "https://github.com/joe-watkins/wcag-mcp.git",
            "command": "node",
            "args": ["{repo}/src/index.js"],
            "buildCommand": "npm install",
            "buildSteps": [["npm", "install"]],
        },
        {
            "name": "aria",
            "repoUrl": "https://github.com/joe-watkins/aria-mcp.git",
            "command": "node",
            "args": ["{repo}/src/index.js"],
            "buildCommand": "npm install",
            "buildSteps": [["npm", "install"]],
        },
        {
            "name": "magentaa11y",
            "repoUrl": "https://github.com/joe-watkins/magentaa11y-mcp.git",
            "command": "node",
            "args": ["{repo}/src/index.js"],
            "buildCommand": "npm install && npm run build",
            "buildSteps": [["npm", "install"], ["npm", "run", "build"]],
        },
        {
            "name": "a11y-personas",
            "repoUrl": "https://github.com/joe-watkins/a11y-personas-mcp.git",
            "command": "node",
            "args": ["{repo}/src/index.js"],
            "buildCommand": "npm install",
            "buildSteps": [["npm", "install"]],
        },
        {
            "name": "a11y-issues-template",
            "repoUrl": "https://github.com/joe-watkins/accessibility-issues-template-mcp.git",
            "command": "node",
            "args": ["{repo}/src/index.js"],
            "buildCommand": "npm install",
            "buildSteps": [["npm", "install"]],
        },
    ],
}
