from flask import current_app, render_template, request, send_from_directory

from . import main
from ..utils.geo import search_visible_shops

FEATURED_SHOPS = 6


@main.route('/')
def index():
    results = search_visible_shops(
        lat=request.args.get('lat'),
        lng=request.args.get('lng'),
        radius=request.args.get('radius'),
    )
    results["shops"] = results["shops"][:FEATURED_SHOPS]
    return render_template('index.html', results=results)


@main.route('/uploads/<path:filename>')
def uploaded_file(filename):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)
