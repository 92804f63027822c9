"""Nested renders -- templates rendering other templates.

Fragments call ``render(locator, options, scope)`` to render another template
in place. Children are resolved next to the calling template first, then
through the loader. Every child is registered in the environment and linked
to its parent.

Run:
    python app.py
"""

from pathlib import Path

from notpl import Environment, FileSystemLoader

templates_dir = Path(__file__).parent / "templates"
env = Environment(loader=FileSystemLoader(templates_dir))

template = env.new("page.html", scope={"title": "Home & Garden", "items": ["rake", "hoe"]})
output = template.render()

children = [env.lookup(fingerprint) for fingerprint in env.children(template)]


def main() -> None:
    print(output)
    print(f"\n{template} renders:")
    for child in children:
        print(f"  {child}")


if __name__ == "__main__":
    main()
