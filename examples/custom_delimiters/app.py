"""Custom delimiters -- choosing the fragment markers.

The default ``<$ ... $>`` markers can be replaced per environment or per
template. A backslash before an opening marker keeps it as literal text.
Changing delimiters on an existing template forces a full render.

Run:
    python app.py
"""

from notpl import Environment

env = Environment(delimiter_start="{%", delimiter_stop="%}", style="none")

template = env.from_string(
    "{% for (n in range(1, 4)): %}{% print(n * n) %} {% endfor %}\\{% literal %}",
)
output = template.render()

# Switch the same template to different markers for one render
php_style = env.from_string("<?php print('hi') ?> and {% print('braces') %}")
php_output = php_style.render(delimiter_start="<?php", delimiter_stop="?>")


def main() -> None:
    print(output)
    print(php_output)


if __name__ == "__main__":
    main()
