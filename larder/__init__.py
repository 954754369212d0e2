"""Describes the Larder domain. Centres around the `RecipeBook`.

Why is this hard?

- The upstream recipe records are irregular. Ingredients arrive as a family of
  numbered fields with no promised upper bound, any of which may be null or
  blank.
- Favorites double as the offline cache. A favorited recipe is served from the
  local store and the network is never asked.
- Category listings are fetched whole and revealed a page at a time, and the
  favorite marks on those pages have to be read when the page is shown, not
  when it was fetched.

The store, the upstream client and the membership index are all passed in.
Nothing here owns a global.
"""
