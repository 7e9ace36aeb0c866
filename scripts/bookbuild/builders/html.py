from bookbuild.builders.base import BaseBuilder


class HtmlBuilder(BaseBuilder):
    """Single-file HTML5 with images and styles embedded."""

    fmt = "html"
    format_name = "HTML5"
    extension = ".html"
    icon = "🌐"

    def format_args(self):
        html = self.config.html

        args = [f"--to={html['to']}", "--standalone"]
        if html.get("embed_resources"):
            args.append("--embed-resources")
        return args

    def after_build(self):
        if self.config.html.get("embed_resources"):
            print(f"  ✓ {self.format_name} file has embedded resources and can be opened in any web browser")
