"""Recursive includes -- two templates that render each other.

``a.html`` renders ``b.html`` and ``b.html`` renders ``a.html``. The second
hop is detected as a cycle: a warning is logged once per ordered pair and
the included template contributes its last output (empty the first time)
instead of recursing.

Run:
    python app.py
"""

from notpl import DictLoader, Environment

templates = {
    "a.html": "A[<$ render('b.html') $>]",
    "b.html": "B[<$ render('a.html') $>]",
}

env = Environment(loader=DictLoader(templates))
template = env.new("a.html")

outputs = [template.render(force_full_render=True) for _ in range(3)]


def main() -> None:
    for number, output in enumerate(outputs, start=1):
        print(f"render {number}: {output}")


if __name__ == "__main__":
    main()
