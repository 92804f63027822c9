"""Hello World -- the simplest notpl template.

Literal text with one code fragment. Everything between ``<$`` and ``$>``
is Python; ``print`` writes into the output instead of stdout.

Run:
    python app.py
"""

from notpl import Environment

env = Environment()
template = env.from_string("Hello, <$ print(name) $>!", scope={"name": "World"})
output = template.render()


def main() -> None:
    print(output)


if __name__ == "__main__":
    main()
