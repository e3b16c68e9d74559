"""Shared fixtures for core unit tests"""

import pytest


SAMPLE_HTML = """\
<!DOCTYPE html>
<html>
<head>
<title>Security Basics</title>
<link rel="stylesheet" href="css/main.css">
<script src="js/app.js"></script>
<script>var next = "<link href='x.css'>"; recordTest(1);</script>
<style>.hero { background: url('/images/hero.png'); }</style>
</head>
<body>
<div class="hero" style="background-image: url(img/bg.jpg)">
<h1>Spot the phish</h1>
<p>Check the <a href="https://example.com/help">sender address</a> before clicking.</p>
<img src="/system/logo.png" alt="logo">
</div>
</body>
</html>
"""


@pytest.fixture(name="sample_html")
def sample_html_fixture():
    return SAMPLE_HTML
