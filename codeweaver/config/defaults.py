# codeweaver/config/defaults.py
# Starter project shown before the user imports or generates anything.

INITIAL_PROJECT_CONTEXT = (
    "This is a versatile coding project. The user might be working on web development (HTML/JS/CSS), "
    "Python scripts, or other common programming tasks. The AI should assist with code generation, "
    "debugging, analysis, file scaffolding, and optimization. If asked to create files, it should use "
    "the specified JSON format for file operations."
)

DEFAULT_MODEL = "gemini-2.5-flash-preview-04-17"

_INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>My Awesome App</title>
    <link rel="stylesheet" href="style.css">
</head>
<body>
    <h1>Hello, CodeWeaver!</h1>
    <p>Edit this project to get started.</p>
    <script src="script.js"></script>
</body>
</html>"""

_STYLE_CSS = """body {
    font-family: sans-serif;
    margin: 20px;
    background-color: #f0f0f0;
    color: #111;
}

h1 {
    color: #333;
}"""

_SCRIPT_JS = """console.log("Hello from script.js in CodeWeaver!");

document.addEventListener('DOMContentLoaded', () => {
    const p = document.createElement('p');
    p.textContent = 'JavaScript is working!';
    document.body.appendChild(p);
});"""

_README_MD = """# My Project

This is a sample project created with CodeWeaver.

## Getting Started

1.  Explore the files: `index.html`, `style.css`, `script.js`.
2.  Import a structure or ask the assistant to scaffold files.
3.  Review AI edits, then accept or discard them.
"""

DEFAULT_PROJECT_FILES = [
    {"path": "index.html", "type": "file", "content": _INDEX_HTML},
    {"path": "style.css", "type": "file", "content": _STYLE_CSS},
    {"path": "script.js", "type": "file", "content": _SCRIPT_JS},
    {"path": "README.md", "type": "file", "content": _README_MD},
]
