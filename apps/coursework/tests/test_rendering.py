from django.test import SimpleTestCase

from apps.coursework.utils.rendering import render_post_body


class RenderPostBodyTests(SimpleTestCase):
    def test_markdown_is_rendered(self):
        html = render_post_body("Read **chapter 3**.\n\n1. Summarise\n2. Discuss")

        self.assertIn("<strong>chapter 3</strong>", html)
        self.assertIn("<ol>", html)

    def test_scripts_and_images_are_stripped(self):
        html = render_post_body('<script>alert(1)</script>![x](http://example.com/x.png)')

        self.assertNotIn("<script", html)
        self.assertNotIn("<img", html)

    def test_links_are_nofollow_and_unsafe_schemes_dropped(self):
        html = render_post_body("[notes](https://example.com/notes) [bad](javascript:void)")

        self.assertIn('rel="nofollow"', html)
        self.assertNotIn("javascript:", html)

    def test_empty_body(self):
        self.assertEqual(render_post_body(None), "")
        self.assertEqual(render_post_body(""), "")
