import json

CLOUD = "https://res.cloudinary.com/demo"

GALLERY_ITEMS = [
    {"src": f"{CLOUD}/image/upload/stage-01.jpg", "alt": "Stage design, act one"},
    {"src": f"{CLOUD}/image/upload/stage-02.jpg", "alt": "Stage design, act two"},
    {"src": f"{CLOUD}/video/upload/rehearsal.mp4", "alt": "Rehearsal"},
    {"src": f"{CLOUD}/image/upload/stage-03.jpg"},
    {"src": f"{CLOUD}/image/upload/stage-04.jpg", "alt": "Finale"},
]

MEDIA_WIDTH = 800


def gallery_attr(items) -> str:
    return "data-gallery='" + json.dumps(items) + "'"


def make_items(count: int) -> list:
    return [{"src": f"{CLOUD}/image/upload/item-{index}.jpg", "alt": f"Item {index}"} for index in range(count)]


PAGE_HTML = f"""<!DOCTYPE html>
<html>
<head><title>Labaig</title></head>
<body>
  <main>
    <article class="project-card" id="multi" {gallery_attr(GALLERY_ITEMS)}>
      <img class="project-card-image" src="thumbs/stage.jpg" alt="Stage">
      <h3>Stage</h3>
    </article>
    <article class="project-card" id="single" {gallery_attr(GALLERY_ITEMS[:1])}>
      <img class="project-card-image" src="thumbs/single.jpg" alt="Single">
    </article>
    <article class="project-card" id="broken" data-gallery='[{{"src": "a.jpg",]'>
      <img class="project-card-image" src="thumbs/broken.jpg" alt="Broken">
    </article>
    <a href="about.html">About</a>
  </main>
</body>
</html>
"""
